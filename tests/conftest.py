"""
Student Support API - Test Configuration and Fixtures
"""
import os
import tempfile

import pytest

# Set testing environment before the app modules read it
os.environ['APP_ENV'] = 'testing'
os.environ['JWT_SECRET'] = 'test-jwt-secret-for-testing-only'
os.environ['UPLOAD_DIR'] = tempfile.mkdtemp(prefix='student-support-uploads-')
os.environ.pop('DATABASE_URL', None)

import mongomock
from faker import Faker
from fastapi.testclient import TestClient

from database import ensure_indexes, get_db
from main import app

fake = Faker()


@pytest.fixture
def mongo_db():
    """Fresh in-memory database per test"""
    db = mongomock.MongoClient()['student_support_test']
    ensure_indexes(db)
    return db


@pytest.fixture
def client(mongo_db):
    """Test client with the database dependency overridden"""
    app.dependency_overrides[get_db] = lambda: mongo_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


def register(client, email=None, password='testpassword123', **extra):
    payload = {'email': email or fake.unique.email(), 'password': password, **extra}
    response = client.post('/api/users/register', json=payload)
    assert response.status_code == 201, response.text
    return response.json()


def auth_headers(token: str) -> dict:
    return {'Authorization': f'Bearer {token}'}


@pytest.fixture
def alice(client):
    """Registered student with auth headers"""
    user = register(client, email='alice@example.com', name='Alice', password='alicepass123')
    user['headers'] = auth_headers(user['token'])
    return user


@pytest.fixture
def bob(client):
    """Second registered user, never the owner of alice's resources"""
    user = register(client, email='bob@example.com', name='Bob', password='bobpass123', role='teaching_staff')
    user['headers'] = auth_headers(user['token'])
    return user
