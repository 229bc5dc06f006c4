"""Pytest configuration and fixtures for agency survey tests."""
import io
import os
import tempfile

import pytest
from PIL import Image

from backend.app import create_app
from backend.models import db
from backend.services.cloud_storage import set_cloud_storage


class InMemoryStorage:
    """Stand-in for CloudStorageService keeping objects in a dict."""

    def __init__(self):
        self.objects = {}
        self.fail_uploads = False

    def upload_bytes(self, object_name, data, content_type='image/jpeg'):
        if self.fail_uploads:
            raise OSError("storage offline")
        self.objects[object_name] = data
        return f"https://storage.example.com/{object_name}"

    def delete_object(self, object_name):
        return self.objects.pop(object_name, None) is not None

    def iter_object_names(self):
        return iter(list(self.objects))


def make_jpeg(size=(64, 48), color=(120, 90, 60)):
    buffer = io.BytesIO()
    Image.new('RGB', size, color).save(buffer, format='JPEG')
    return buffer.getvalue()


@pytest.fixture
def app(tmp_path):
    """Create and configure a test app instance."""
    # Create temporary database for testing
    db_fd, db_path = tempfile.mkstemp()

    test_config = {
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': f'sqlite:///{db_path}',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'LOG_DIR': str(tmp_path / 'logs'),
        'MAX_UPLOAD_BYTES': 256 * 1024,
    }

    app = create_app(test_config)

    with app.app_context():
        db.create_all()

    yield app

    # Cleanup
    with app.app_context():
        db.session.remove()
        db.engine.dispose()
    os.close(db_fd)
    os.unlink(db_path)


@pytest.fixture
def client(app):
    """A test client for the app."""
    return app.test_client()


@pytest.fixture
def runner(app):
    """A test runner for the app's Click commands."""
    return app.test_cli_runner()


@pytest.fixture
def storage():
    """In-memory object storage installed as the process-wide instance."""
    fake = InMemoryStorage()
    set_cloud_storage(fake)
    yield fake
    set_cloud_storage(None)


def register_and_login(client, username, password='secret123'):
    """Register a user and return bearer auth headers."""
    client.post('/api/auth/register', json={
        'username': username,
        'email': f'{username}@example.com',
        'password': password,
    })
    response = client.post('/api/auth/login', json={'username': username, 'password': password})
    assert response.status_code == 200
    return {'Authorization': f"Bearer {response.get_json()['token']}"}


@pytest.fixture
def auth_headers(client):
    """Headers of the first registered user (an admin)."""
    return register_and_login(client, 'ana')


@pytest.fixture
def other_headers(client, auth_headers):
    """Headers of a second, non-admin user."""
    return register_and_login(client, 'bruno')


@pytest.fixture
def survey_id(client, auth_headers):
    response = client.post('/api/surveys', headers=auth_headers, json={
        'agency_name': 'Agencia Centro',
        'prefix': '1234',
        'manager_name': 'Maria Souza',
        'registration': 'F123456',
        'city': 'Recife',
        'state': 'PE',
    })
    assert response.status_code == 201
    return response.get_json()['id']


@pytest.fixture
def environment_id(client, auth_headers, survey_id):
    response = client.post('/api/environments', headers=auth_headers,
                           json={'survey_id': survey_id, 'name': 'Teller Area'})
    assert response.status_code == 201
    return response.get_json()['id']
