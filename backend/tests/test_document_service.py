"""
Study Portal Backend — Document Service Unit Tests
====================================================

What:  Tests for DocumentService (create, get, list, delete).
How:   Forms are produced by the real decoder so stored payloads exist on disk.

What we test:
    ✅ Ids are sequential starting at 1
    ✅ Only the first uploaded file is registered; the rest are removed
    ✅ Missing file / department / name raise ValidationError and clean up
    ✅ Lookups and department filtering
    ✅ Delete removes record and payload
"""

import pytest

from studyportal.exceptions import NotFoundError, ValidationError
from studyportal.schemas.upload import DecodedForm

CONTENT_TYPE = "multipart/form-data; boundary=XYZ"


async def _upload(decoder, multipart_body, **fields):
    filename = fields.pop("filename", "doc.pdf")
    parts = [{"name": k, "content": v} for k, v in fields.items()]
    if filename:
        parts.append({"name": "file", "filename": filename, "content": b"%PDF-1.7 body"})
    return await decoder.decode(multipart_body(parts), CONTENT_TYPE)


class TestDocumentServiceCreate:
    """Tests for create_from_upload()."""

    @pytest.mark.asyncio
    async def test_create_assigns_sequential_ids(self, registry, decoder, multipart_body):
        first = await registry.create_from_upload(
            await _upload(decoder, multipart_body, departmentId="1", name="Ghid")
        )
        second = await registry.create_from_upload(
            await _upload(decoder, multipart_body, departmentId="2", name="EKG")
        )

        assert (first.id, second.id) == (1, 2)
        assert first.original_filename == "doc.pdf"
        assert first.filename.endswith(".pdf")
        assert first.size == len(b"%PDF-1.7 body")
        assert first.description is None

    @pytest.mark.asyncio
    async def test_create_keeps_description(self, registry, decoder, multipart_body):
        document = await registry.create_from_upload(
            await _upload(
                decoder, multipart_body,
                departmentId="4", name="Ghid", description="Ediția 2025",
            )
        )
        assert document.description == "Ediția 2025"
        assert document.department_id == 4

    @pytest.mark.asyncio
    async def test_only_first_file_is_kept(self, registry, decoder, multipart_body, temp_uploads):
        body = multipart_body([
            {"name": "departmentId", "content": "1"},
            {"name": "name", "content": "Two files"},
            {"name": "file", "filename": "first.pdf", "content": b"one"},
            {"name": "extra", "filename": "second.pdf", "content": b"two"},
        ])
        form = await decoder.decode(body, CONTENT_TYPE)

        document = await registry.create_from_upload(form)

        assert document.original_filename == "first.pdf"
        assert [p.name for p in temp_uploads.iterdir()] == [document.filename]

    @pytest.mark.asyncio
    async def test_no_file_raises(self, registry):
        form = DecodedForm(fields={"departmentId": "1", "name": "x"})
        with pytest.raises(ValidationError, match="No file uploaded"):
            await registry.create_from_upload(form)

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "fields, message",
        [
            ({"name": "Ghid"}, "Department ID is required"),
            ({"departmentId": "abc", "name": "Ghid"}, "must be an integer"),
            ({"departmentId": "0", "name": "Ghid"}, "must be positive"),
            ({"departmentId": "1"}, "Document name is required"),
            ({"departmentId": "1", "name": "   "}, "Document name is required"),
        ],
    )
    async def test_invalid_fields_raise_and_clean_up(
        self, registry, decoder, multipart_body, temp_uploads, fields, message
    ):
        form = await _upload(decoder, multipart_body, **fields)
        assert len(list(temp_uploads.iterdir())) == 1

        with pytest.raises(ValidationError, match=message):
            await registry.create_from_upload(form)

        assert list(temp_uploads.iterdir()) == []
        assert registry.count() == 0


class TestDocumentServiceLookup:
    """Tests for get_document(), list_documents() and delete_document()."""

    @pytest.mark.asyncio
    async def test_get_missing_raises_not_found(self, registry):
        with pytest.raises(NotFoundError, match="Document with ID '42'"):
            await registry.get_document(42)

    @pytest.mark.asyncio
    async def test_list_filters_by_department(self, registry, decoder, multipart_body):
        for department, name in [("1", "a"), ("2", "b"), ("1", "c")]:
            await registry.create_from_upload(
                await _upload(decoder, multipart_body, departmentId=department, name=name)
            )

        all_docs = await registry.list_documents()
        dept_one = await registry.list_documents(department_id=1)

        assert [d.name for d in all_docs] == ["a", "b", "c"]
        assert [d.name for d in dept_one] == ["a", "c"]
        assert await registry.list_documents(department_id=99) == []

    @pytest.mark.asyncio
    async def test_delete_removes_record_and_file(self, registry, decoder, multipart_body, temp_uploads):
        document = await registry.create_from_upload(
            await _upload(decoder, multipart_body, departmentId="1", name="Ghid")
        )
        assert (temp_uploads / document.filename).exists()

        await registry.delete_document(document.id)

        assert not (temp_uploads / document.filename).exists()
        with pytest.raises(NotFoundError):
            await registry.get_document(document.id)

    @pytest.mark.asyncio
    async def test_delete_missing_raises_not_found(self, registry):
        with pytest.raises(NotFoundError):
            await registry.delete_document(7)

    @pytest.mark.asyncio
    async def test_ids_are_not_reused_after_delete(self, registry, decoder, multipart_body):
        first = await registry.create_from_upload(
            await _upload(decoder, multipart_body, departmentId="1", name="a")
        )
        await registry.delete_document(first.id)
        second = await registry.create_from_upload(
            await _upload(decoder, multipart_body, departmentId="1", name="b")
        )
        assert second.id == 2
