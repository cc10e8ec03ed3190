"""
Tests for the JSON file repository used when STORAGE_MODE=local
"""
import asyncio
from datetime import timedelta

import pytest

from agriweather.models.weather_model import WeatherAlert, utc_now
from conftest import DELHI, make_record


def make_alert(user_id="u1", created_offset_hours=0, ttl_hours=24, **overrides) -> WeatherAlert:
    created_at = utc_now() - timedelta(hours=created_offset_hours)
    values = dict(
        user_id=user_id,
        alert_type="wind",
        title="Strong Wind Warning",
        message="Wind speed is 25 km/h. Secure tall crops and avoid spraying.",
        severity="medium",
        location=DELHI,
        created_at=created_at,
        expires_at=created_at + timedelta(hours=ttl_hours),
    )
    values.update(overrides)
    return WeatherAlert(**values)


def test_cache_save_get_overwrite_delete(local_repo):
    asyncio.run(local_repo.save_cache(make_record(temperature=22)))
    asyncio.run(local_repo.save_cache(make_record(temperature=30)))

    record = asyncio.run(local_repo.get_cache("28.6139,77.2090"))
    assert record.current.temperature == 30
    assert record.cached_at.tzinfo is not None
    assert len(list(local_repo.cache_dir.iterdir())) == 1

    assert asyncio.run(local_repo.delete_cache("28.6139,77.2090")) is True
    assert asyncio.run(local_repo.get_cache("28.6139,77.2090")) is None
    # Second delete of a missing record is fine
    assert asyncio.run(local_repo.delete_cache("28.6139,77.2090")) is True


def test_unreadable_cache_file_is_a_miss(local_repo):
    (local_repo.cache_dir / "28.6139_77.2090.json").write_text("{broken")
    assert asyncio.run(local_repo.get_cache("28.6139,77.2090")) is None


def test_insert_alerts_assigns_ids_per_user(local_repo):
    saved = asyncio.run(local_repo.insert_alerts([make_alert("u1"), make_alert("u2"), make_alert("u1")]))

    assert len(saved) == 3
    assert len({a.id for a in saved}) == 3
    assert len(asyncio.run(local_repo.find_active_alerts("u1", utc_now()))) == 2
    assert len(asyncio.run(local_repo.find_active_alerts("u2", utc_now()))) == 1


def test_insert_nothing(local_repo):
    assert asyncio.run(local_repo.insert_alerts([])) == []


def test_find_active_alerts_filters_and_sorts(local_repo):
    asyncio.run(local_repo.insert_alerts([
        make_alert(created_offset_hours=5, title="older"),
        make_alert(created_offset_hours=1, title="newer"),
        make_alert(created_offset_hours=30, title="expired"),
        make_alert(title="inactive", is_active=False),
    ]))

    alerts = asyncio.run(local_repo.find_active_alerts("u1", utc_now()))

    assert [a.title for a in alerts] == ["newer", "older"]


def test_user_location_round_trip(local_repo):
    assert asyncio.run(local_repo.get_user_location("u1")) is None

    asyncio.run(local_repo.save_user_location("u1", DELHI))

    assert asyncio.run(local_repo.get_user_location("u1")) == DELHI


def test_unreadable_alerts_file_raises(local_repo):
    (local_repo.alerts_dir / "u1.json").write_text("{broken")

    with pytest.raises(ValueError):
        asyncio.run(local_repo.find_active_alerts("u1", utc_now()))
