import mongomock
import pytest

from resources import EventService, ResourceService
from schemas import EventPatch


def test_resource_service_base_is_abstract():
    db = mongomock.MongoClient()['student_support_test']
    with pytest.raises(TypeError):
        ResourceService(db)


def test_event_patch_parses_date_and_drops_blanks():
    db = mongomock.MongoClient()['student_support_test']
    changes = EventService(db).apply_patch(EventPatch(title='  ', venue='Hall C', date='2024-07-01'))
    assert set(changes) == {'venue', 'date'}
    assert changes['date'].year == 2024 and changes['date'].month == 7
