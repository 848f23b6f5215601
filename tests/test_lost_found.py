from bson import ObjectId


def report_item(client, headers, item_name='Blue umbrella', description='Left in library', **kwargs):
    response = client.post(
        '/api/lostfound',
        data={'item_name': item_name, 'description': description},
        headers=headers,
        **kwargs,
    )
    assert response.status_code == 201, response.text
    return response.json()


def test_report_and_list_items(client, alice, bob):
    item = report_item(client, alice['headers'])
    assert item['item_name'] == 'Blue umbrella'
    assert item['user'] == alice['id']
    assert item['image'] is None

    listed = client.get('/api/lostfound', headers=bob['headers']).json()
    assert len(listed) == 1
    assert listed[0]['user'] == {'id': alice['id'], 'name': 'Alice', 'role': 'student'}


def test_report_requires_item_name_and_description(client, alice):
    response = client.post('/api/lostfound', data={'description': 'No name'}, headers=alice['headers'])
    assert response.status_code == 400
    assert response.json()['message'] == 'Item name and description are required'


def test_report_with_image(client, alice):
    item = report_item(client, alice['headers'], files={'image': ('umbrella.jpg', b'img', 'image/jpeg')})
    assert item['image'].startswith('/uploads/')


def test_get_item(client, alice):
    item = report_item(client, alice['headers'])
    response = client.get(f"/api/lostfound/{item['id']}", headers=alice['headers'])
    assert response.status_code == 200
    assert response.json()['description'] == 'Left in library'

    response = client.get(f'/api/lostfound/{ObjectId()}', headers=alice['headers'])
    assert response.status_code == 404
    assert response.json()['message'] == 'Item not found'


def test_update_item_ownership(client, alice, bob):
    item = report_item(client, alice['headers'])
    url = f"/api/lostfound/{item['id']}"

    response = client.put(url, data={'item_name': 'Red umbrella'}, headers=bob['headers'])
    assert response.status_code == 403
    assert response.json()['message'] == 'Not authorized to update this item'

    response = client.put(url, data={'item_name': 'Red umbrella'}, headers=alice['headers'])
    assert response.status_code == 200
    assert response.json()['item_name'] == 'Red umbrella'
    assert response.json()['description'] == 'Left in library'


def test_delete_item_ownership(client, alice, bob):
    item = report_item(client, alice['headers'])
    url = f"/api/lostfound/{item['id']}"

    assert client.delete(url, headers=bob['headers']).status_code == 403

    response = client.delete(url, headers=alice['headers'])
    assert response.status_code == 200
    assert response.json() == {'message': 'Item removed'}
    assert client.get(url, headers=alice['headers']).status_code == 404


def test_owner_can_edit_then_remove_item(client, alice, mongo_db):
    item = report_item(client, alice['headers'])
    url = f"/api/lostfound/{item['id']}"

    response = client.put(
        url,
        data={'description': 'Found near the canteen'},
        files={'image': ('umbrella.png', b'img', 'image/png')},
        headers=alice['headers'],
    )
    assert response.status_code == 200
    data = response.json()
    assert data['item_name'] == 'Blue umbrella'
    assert data['description'] == 'Found near the canteen'
    assert data['image'].endswith('.png')

    response = client.delete(url, headers=alice['headers'])
    assert response.status_code == 200
    assert mongo_db['lostfound'].count_documents({}) == 0
