import os

# Must be set before quizgen modules are imported
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["OPENAI_API_KEY"] = "test-key"

import pytest
from fastapi.testclient import TestClient
from sqlmodel import SQLModel, Session

from quizgen.db import engine
from quizgen.main import app


@pytest.fixture
def database():
    SQLModel.metadata.create_all(engine)
    yield engine
    SQLModel.metadata.drop_all(engine)


@pytest.fixture
def db_session(database):
    with Session(database) as session:
        yield session


@pytest.fixture
def client(database):
    return TestClient(app)
