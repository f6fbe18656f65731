import pytest

from src.api.environments import Environment, Folder, folder_for, parse_folder, resolve_environment
from src.api.errors import ValidationError

pytestmark = pytest.mark.unit


class TestResolveEnvironment:
    def test_known_literals(self):
        assert resolve_environment("production") is Environment.PRODUCTION
        assert resolve_environment("development") is Environment.DEVELOPMENT

    @pytest.mark.parametrize("raw", [None, ""])
    def test_absent_defaults_to_development(self, raw):
        assert resolve_environment(raw) is Environment.DEVELOPMENT

    @pytest.mark.parametrize("raw", ["staging", "Production", " production", "prod", "media", "development\n"])
    def test_unknown_values_rejected(self, raw):
        with pytest.raises(ValidationError) as exc_info:
            resolve_environment(raw)
        err = exc_info.value
        assert err.status_code == 400
        assert err.error == "Invalid environment"
        assert "production, development" in err.message


class TestFolders:
    def test_folder_mapping(self):
        assert folder_for(Environment.PRODUCTION) is Folder.MEDIA
        assert folder_for(Environment.DEVELOPMENT) is Folder.MEDIA_DEV
        assert Folder.MEDIA.value == "media"
        assert Folder.MEDIA_DEV.value == "media-dev"

    def test_parse_known_folders(self):
        assert parse_folder("media") is Folder.MEDIA
        assert parse_folder("media-dev") is Folder.MEDIA_DEV

    @pytest.mark.parametrize("raw", ["nosuchfolder", "", "..", "MEDIA", "media/..", "production"])
    def test_parse_unknown_folder(self, raw):
        with pytest.raises(ValidationError) as exc_info:
            parse_folder(raw)
        assert exc_info.value.error == "Invalid folder path"
