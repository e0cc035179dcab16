"""Tests for the document indexing pipeline against an in-memory database."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from sqlalchemy import select

from rag_engine.database.models import Document, Embedding
from rag_engine.models.document import DocumentStatus
from rag_engine.repositories.embedding_repository import EmbeddingRepository
from rag_engine.services.chunking_service import ChunkingService
from rag_engine.services.embedding_service import EmbeddingService
from rag_engine.services.pipeline_service import DocumentPipeline
from rag_engine.utils.errors import (
    DatabaseError,
    DimensionMismatchError,
    NotFoundError,
    TransactionError,
)

LONG_CONTENT = "\n\n".join(f"## Part {i}\n" + f"Paragraph {i} text. " * 60 for i in range(5))


@pytest.fixture
def embedding_service(make_vector):
    """Embedding service stub returning one vector per value."""
    service = MagicMock(spec=EmbeddingService)

    async def generate(config, values):
        return [make_vector(0.01 * (i + 1)) for i in range(len(values))]

    service.generate_embeddings = AsyncMock(side_effect=generate)
    return service


@pytest.fixture
def pipeline(session_factory, embedding_service):
    return DocumentPipeline(
        session_factory=session_factory,
        chunking_service=ChunkingService(),
        embedding_service=embedding_service,
    )


@pytest.fixture
def load_state(session_factory):
    """Read back (document, embeddings) for assertions."""

    async def _load(document_id):
        async with session_factory() as session:
            document = (
                await session.execute(select(Document).where(Document.id == document_id))
            ).scalar_one()
            rows = (
                await session.execute(
                    select(Embedding)
                    .where(Embedding.document_id == document_id)
                    .order_by(Embedding.chunk_index)
                )
            ).scalars().all()
            return document, list(rows)

    return _load


class TestProcessDocument:
    """Successful indexing runs."""

    @pytest.mark.asyncio
    async def test_indexes_document(self, pipeline, create_document, load_state, provider_config):
        document_id = await create_document(LONG_CONTENT)

        result = await pipeline.process_document(document_id, "user-1", provider_config)

        document, rows = await load_state(document_id)
        expected = ChunkingService().split(LONG_CONTENT)

        assert result.document_id == document_id
        assert result.status == DocumentStatus.COMPLETED
        assert result.chunk_count == len(expected) == len(rows)
        assert result.processing_time_ms >= 0
        assert document.status == "completed"
        assert [r.chunk_index for r in rows] == list(range(len(rows)))
        assert [r.content for r in rows] == [c.content for c in expected]
        assert rows[0].user_id == "user-1"
        assert rows[1].chunk_metadata == expected[1].metadata

    @pytest.mark.asyncio
    async def test_reprocessing_is_idempotent(
        self, pipeline, create_document, load_state, provider_config
    ):
        document_id = await create_document(LONG_CONTENT)

        first = await pipeline.process_document(document_id, "user-1", provider_config)
        _, first_rows = await load_state(document_id)
        second = await pipeline.process_document(document_id, "user-1", provider_config)
        document, second_rows = await load_state(document_id)

        assert first.chunk_count == second.chunk_count == len(second_rows)
        assert document.status == "completed"
        assert {r.id for r in first_rows}.isdisjoint({r.id for r in second_rows})

    @pytest.mark.asyncio
    async def test_inline_content_is_persisted(
        self, pipeline, create_document, load_state, provider_config
    ):
        document_id = await create_document("old content")
        new_content = "你好 world"

        result = await pipeline.process_document(
            document_id, "user-1", provider_config, content=new_content
        )

        document, rows = await load_state(document_id)
        assert result.chunk_count == 1
        assert document.content == new_content
        assert document.file_size == len(new_content.encode("utf-8")) == 12
        assert rows[0].content == new_content

    @pytest.mark.asyncio
    async def test_blank_content_clears_embeddings(
        self, pipeline, create_document, load_state, provider_config, embedding_service
    ):
        document_id = await create_document(LONG_CONTENT)
        await pipeline.process_document(document_id, "user-1", provider_config)
        embedding_service.generate_embeddings.reset_mock()

        result = await pipeline.process_document(
            document_id, "user-1", provider_config, content="   \n"
        )

        document, rows = await load_state(document_id)
        assert result.chunk_count == 0
        assert rows == []
        assert document.status == "completed"
        embedding_service.generate_embeddings.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_marks_processing_before_work(
        self, pipeline, create_document, load_state, provider_config, embedding_service
    ):
        document_id = await create_document(LONG_CONTENT)
        seen = {}

        async def generate(config, values):
            document, _ = await load_state(document_id)
            seen["status"] = document.status
            raise RuntimeError("provider down")

        embedding_service.generate_embeddings.side_effect = generate

        with pytest.raises(RuntimeError):
            await pipeline.process_document(document_id, "user-1", provider_config)

        assert seen["status"] == "processing"


class TestFailures:
    """Failure handling and atomicity."""

    @pytest.mark.asyncio
    async def test_missing_document_raises_not_found(
        self, pipeline, create_document, load_state, provider_config
    ):
        document_id = await create_document(LONG_CONTENT, user_id="someone-else")

        with pytest.raises(NotFoundError):
            await pipeline.process_document(document_id, "user-1", provider_config)

        document, _ = await load_state(document_id)
        assert document.status == "uploading"

    @pytest.mark.asyncio
    async def test_embedding_failure_keeps_previous_rows(
        self, pipeline, create_document, load_state, provider_config, embedding_service
    ):
        document_id = await create_document(LONG_CONTENT)
        await pipeline.process_document(document_id, "user-1", provider_config)
        _, before = await load_state(document_id)

        error = RuntimeError("provider down")
        embedding_service.generate_embeddings.side_effect = error

        with pytest.raises(RuntimeError) as exc_info:
            await pipeline.process_document(document_id, "user-1", provider_config)

        document, after = await load_state(document_id)
        assert exc_info.value is error
        assert document.status == "failed"
        assert [r.id for r in after] == [r.id for r in before]

    @pytest.mark.asyncio
    async def test_insert_failure_rolls_back_delete(
        self, pipeline, create_document, load_state, provider_config
    ):
        document_id = await create_document(LONG_CONTENT)
        await pipeline.process_document(document_id, "user-1", provider_config)
        _, before = await load_state(document_id)

        with patch.object(
            EmbeddingRepository, "bulk_insert", side_effect=DatabaseError("insert failed")
        ):
            with pytest.raises(TransactionError) as exc_info:
                await pipeline.process_document(
                    document_id, "user-1", provider_config, content="replacement text"
                )

        document, after = await load_state(document_id)
        assert isinstance(exc_info.value.__cause__, DatabaseError)
        assert document.status == "failed"
        assert document.content == LONG_CONTENT
        assert [r.id for r in after] == [r.id for r in before]

    @pytest.mark.asyncio
    async def test_vector_count_mismatch(
        self, pipeline, create_document, load_state, provider_config, embedding_service, make_vector
    ):
        document_id = await create_document(LONG_CONTENT)
        embedding_service.generate_embeddings.side_effect = None
        embedding_service.generate_embeddings.return_value = [make_vector()]

        with pytest.raises(DimensionMismatchError):
            await pipeline.process_document(document_id, "user-1", provider_config)

        document, rows = await load_state(document_id)
        assert document.status == "failed"
        assert rows == []

    @pytest.mark.asyncio
    async def test_mark_failed_disabled_keeps_completed_status(
        self, pipeline, create_document, load_state, provider_config, embedding_service
    ):
        document_id = await create_document(LONG_CONTENT, status="completed")
        embedding_service.generate_embeddings.side_effect = RuntimeError("provider down")

        with pytest.raises(RuntimeError):
            await pipeline.process_document(
                document_id, "user-1", provider_config, mark_failed=False
            )

        document, _ = await load_state(document_id)
        assert document.status == "completed"

    @pytest.mark.asyncio
    async def test_no_status_writes_when_both_flags_disabled(
        self, pipeline, create_document, load_state, provider_config, embedding_service
    ):
        document_id = await create_document(LONG_CONTENT, status="uploading")
        embedding_service.generate_embeddings.side_effect = RuntimeError("provider down")

        with patch.object(DocumentPipeline, "_set_status", new=AsyncMock()) as set_status:
            with pytest.raises(RuntimeError):
                await pipeline.process_document(
                    document_id,
                    "user-1",
                    provider_config,
                    mark_processing=False,
                    mark_failed=False,
                )

        set_status.assert_not_awaited()
        document, _ = await load_state(document_id)
        assert document.status == "uploading"

    @pytest.mark.asyncio
    async def test_failed_status_update_error_does_not_mask_original(
        self, pipeline, create_document, provider_config, embedding_service
    ):
        document_id = await create_document(LONG_CONTENT)
        error = RuntimeError("provider down")
        embedding_service.generate_embeddings.side_effect = error

        with patch.object(
            DocumentPipeline,
            "_set_status",
            new=AsyncMock(side_effect=[None, DatabaseError("status update failed")]),
        ):
            with pytest.raises(RuntimeError) as exc_info:
                await pipeline.process_document(document_id, "user-1", provider_config)

        assert exc_info.value is error
