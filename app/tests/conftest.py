import pytest
from fastapi.testclient import TestClient
from sqlmodel import Session, SQLModel, create_engine
from sqlmodel.pool import StaticPool

from app.main import app
from app.api.chapters import get_engine
from app.agents.backends.registry import BackendRegistry
from app.core.engine import GenerationEngine
from app.db.models import Child, Chore, ChoreCompletion, ChoreStatus
from app.services.notifications import DatabaseNotificationSink
from app.services.profile_store import SQLProfileStore
from app.tests.stubs import MORNING, RecordingSink


TEST_DATABASE_URL = "sqlite:///:memory:"

engine = create_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool
)

@pytest.fixture(name="session")
def session_fixture():

    SQLModel.metadata.create_all(engine)

    with Session(engine) as session:
        yield session

    SQLModel.metadata.drop_all(engine)


@pytest.fixture(name="store")
def store_fixture(session: Session):
    return SQLProfileStore(engine)


@pytest.fixture(name="sink")
def sink_fixture():
    return RecordingSink()


@pytest.fixture(name="mia")
def mia_fixture(session: Session):
    """Child on the space adventure with no chapters yet."""
    child = Child(name="Mia", age=7, age_bracket="7-8", world_theme="space_adventure")
    session.add(child)
    session.commit()
    session.refresh(child)
    return child


@pytest.fixture(name="chores")
def chores_fixture(session: Session, mia: Child):
    """Approved, pending and rejected completions for Mia. Returns {title: completion_id}."""
    rows = [
        ("Feed the cat", ChoreStatus.APPROVED),
        ("Make the bed", ChoreStatus.APPROVED),
        ("Tidy the toys", ChoreStatus.PENDING),
        ("Water the plants", ChoreStatus.REJECTED),
    ]
    ids = {}
    for title, status in rows:
        chore = Chore(title=title)
        session.add(chore)
        session.commit()
        session.refresh(chore)
        completion = ChoreCompletion(chore_id=chore.id, child_id=mia.id, status=status)
        session.add(completion)
        session.commit()
        session.refresh(completion)
        ids[title] = completion.id
    return ids


@pytest.fixture(name="make_engine")
def make_engine_fixture(store: SQLProfileStore, sink: RecordingSink):
    """Factory for a GenerationEngine over the test database with the given backends."""

    def factory(backends=(), default_index=0, clock=lambda: MORNING, notifier=None, profile_store=None):
        return GenerationEngine(
            store=profile_store or store,
            registry=BackendRegistry(list(backends), default_index=default_index),
            notifier=notifier or sink,
            clock=clock,
        )

    return factory


@pytest.fixture(name="client")
def client_fixture(session: Session, make_engine):

    generation_engine = make_engine()

    app.dependency_overrides[get_engine] = lambda: generation_engine

    client = TestClient(app)
    yield client

    app.dependency_overrides.clear()


@pytest.fixture(name="db_sink")
def db_sink_fixture(session: Session):
    return DatabaseNotificationSink(engine)
