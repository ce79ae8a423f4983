from datetime import datetime, timezone
from types import SimpleNamespace
from uuid import uuid4

from app.api.v1.admin.schemas import AuditLogResponse
from app.api.v1.classes.schemas import ClassResponse
from app.core.config import Settings


def test_settings_read_aliases_and_ignore_unknown_keys() -> None:
    config = Settings(
        DATABASE_URL="sqlite+aiosqlite://",
        JWT_SECRET_KEY="secret",
        DEFAULT_MAX_WEEKLY_EXAMS="3",
        SOMETHING_ELSE="ignored",
    )
    assert config.default_max_weekly_exams == 3
    assert config.default_max_weekly_tasks == 2
    assert not hasattr(config, "SOMETHING_ELSE")
    assert Settings.model_config["env_file"] == ".env"


def test_response_models_read_from_attributes() -> None:
    log = SimpleNamespace(
        id=uuid4(),
        user_id=None,
        action="UPDATE_SETTING",
        entity_type="setting",
        entity_id="semester",
        old_values={"value": "1"},
        new_values={"value": "2"},
        created_at=datetime.now(timezone.utc),
    )
    assert AuditLogResponse.model_validate(log).entity_id == "semester"
    assert ClassResponse.model_config["from_attributes"] is True
