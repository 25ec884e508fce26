"""
Tests for mediamotion service health and endpoints.
"""
import pytest

import app as service
from app import app
from mediamotion.composition import CompositionAssembler


@pytest.fixture
def client():
    app.config['TESTING'] = True
    with app.test_client() as client:
        yield client


@pytest.fixture
def scripted_assembler(monkeypatch, scripted_probe):
    assembler = CompositionAssembler(probe=scripted_probe({"https://cdn.example.com/song.mp3": 9}))
    monkeypatch.setattr(service, "_assembler", assembler)
    return assembler


def test_health_endpoint(client):
    """Test health check returns healthy status."""
    response = client.get('/health')
    assert response.status_code == 200
    data = response.get_json()
    assert data['status'] == 'healthy'
    assert data['service'] == 'mediamotion'
    assert 'version' in data
    assert 'timestamp' in data


def test_list_presets(client):
    """Test the built-in presets are listed."""
    response = client.get('/api/presets')
    assert response.status_code == 200
    data = response.get_json()
    assert data['count'] == 2
    assert {preset['id'] for preset in data['presets']} == {'base-scene', 'media-track'}
    assert data['presets'][0]['presetType'] == 'full'


def test_apply_requires_patch(client):
    """Test apply endpoint requires a patch."""
    response = client.post('/api/presets/apply', json={'root': {}})
    assert response.status_code == 400
    assert 'error' in response.get_json()


def test_apply_patch(client):
    """Test a data patch lands on its target."""
    response = client.post('/api/presets/apply', json={
        'root': {
            'childrenData': [{'id': 'title', 'type': 'atom', 'componentId': 'TextAtom', 'data': {'text': 'a'}}],
        },
        'patch': {'presetType': 'data', 'targetId': 'title', 'output': {'data': {'text': 'b'}}},
    })
    assert response.status_code == 200
    data = response.get_json()
    assert data['root']['childrenData'][0]['data'] == {'text': 'b'}


def test_apply_malformed_patch(client):
    """Test a patch without payload is rejected."""
    response = client.post('/api/presets/apply', json={
        'root': {'childrenData': [{'id': 'title', 'type': 'atom', 'componentId': 'TextAtom'}]},
        'patch': {'presetType': 'effects', 'targetId': 'title', 'output': {}},
    })
    assert response.status_code == 422


def test_assemble_requires_root(client):
    """Test assemble endpoint requires a body."""
    response = client.post('/api/composition/assemble', json={})
    assert response.status_code == 400


def test_assemble_invalid_root(client):
    """Test a node without type is rejected."""
    response = client.post('/api/composition/assemble', json={'childrenData': [{'id': 'x'}]})
    assert response.status_code == 400


def test_assemble(client, scripted_assembler):
    """Test assembling a root fitted to an audio atom."""
    response = client.post('/api/composition/assemble', json={
        'childrenData': [
            {'id': 'song', 'type': 'atom', 'componentId': 'AudioAtom',
             'data': {'src': 'https://cdn.example.com/song.mp3'}},
        ],
        'config': {'fps': 30, 'fitDurationTo': 'song'},
    })
    assert response.status_code == 200
    data = response.get_json()
    assert data['duration'] == 9
    assert data['durationInFrames'] == 270


def test_from_presets_requires_list(client):
    """Test from-presets endpoint requires a presets array."""
    response = client.post('/api/composition/from-presets', json={})
    assert response.status_code == 400


def test_from_presets_unknown_preset(client, scripted_assembler):
    """Test an unknown preset id returns 404."""
    response = client.post('/api/composition/from-presets', json={'presets': [{'presetId': 'nope'}]})
    assert response.status_code == 404


def test_from_presets(client, scripted_assembler):
    """Test building and assembling a composition from presets."""
    response = client.post('/api/composition/from-presets', json={
        'presets': [
            {'presetId': 'base-scene', 'params': {'backgroundColor': 'black', 'fitDurationTo': 'music'}},
            {'presetId': 'media-track', 'params': {
                'trackName': 'music',
                'trackType': 'aligned',
                'trackFitDurationTo': 'music-audio-0',
                'mediaItems': [{'src': 'https://cdn.example.com/song.mp3', 'type': 'audio'}],
            }},
        ],
    })
    assert response.status_code == 200
    data = response.get_json()
    assert data['applied'] == ['base-scene', 'media-track']
    assert data['skipped'] == []
    assert data['duration'] == 9
    assert data['width'] == 1920
    assert data['height'] == 1080
