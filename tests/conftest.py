import pytest
from fastapi.testclient import TestClient

from knowledge_base.api.main import create_app
from knowledge_base.core.service import KnowledgeBaseService
from knowledge_base.core.store import SqliteDocumentStore
from knowledge_base.vector.embeddings import SinHashEmbedding


@pytest.fixture
def store():
    """Fresh in-memory document store."""
    store = SqliteDocumentStore(":memory:")
    yield store
    store.close()


@pytest.fixture
def embedder():
    return SinHashEmbedding(dimension=10)


@pytest.fixture
def service(store, embedder):
    return KnowledgeBaseService(store, embedder, workers=1)


@pytest.fixture
def upload_dir(tmp_path):
    path = tmp_path / "uploads"
    path.mkdir()
    return path


@pytest.fixture
def client(service, upload_dir):
    """Test client wired to the in-memory service."""
    app = create_app(service=service, upload_dir=str(upload_dir), max_file_size=1024)
    with TestClient(app, raise_server_exceptions=False) as test_client:
        yield test_client
