"""
Tests for Drive credential acquisition.
"""

import json
import os
import sys

import pytest
from google.auth.exceptions import RefreshError

import ocrsub.drive_auth as drive_auth
from ocrsub.drive_auth import DriveCredentialProvider


class FakeCreds:
    def __init__(self, valid=True, expired=False, refresh_token="r", refresh_error=None):
        self.valid = valid
        self.expired = expired
        self.refresh_token = refresh_token
        self.refresh_error = refresh_error
        self.refreshed = False

    def refresh(self, request):
        if self.refresh_error:
            raise self.refresh_error
        self.refreshed = True
        self.valid = True
        self.expired = False

    def to_json(self):
        return json.dumps({"token": "abc", "refresh_token": self.refresh_token})


class FakeFlow:
    runs = 0

    def __init__(self, creds):
        self.creds = creds

    def run_local_server(self, port):
        FakeFlow.runs += 1
        return self.creds


@pytest.fixture
def paths(tmp_path):
    return tmp_path / "credentials.json", tmp_path / "token.json"


@pytest.fixture
def stored(monkeypatch):
    """Patch token loading to return whatever ``stored.creds`` holds."""
    holder = type("Holder", (), {"creds": None})()

    def from_file(path, scopes):
        return holder.creds

    monkeypatch.setattr(drive_auth.Credentials, "from_authorized_user_file", staticmethod(from_file))
    return holder


@pytest.fixture
def flow(monkeypatch):
    new_creds = FakeCreds()
    FakeFlow.runs = 0
    monkeypatch.setattr(
        drive_auth.InstalledAppFlow, "from_client_secrets_file",
        staticmethod(lambda path, scopes: FakeFlow(new_creds))
    )
    return new_creds


class TestAcquire:
    """Token reuse, refresh and consent flow."""

    def test_valid_token_reused(self, paths, stored, flow):
        secrets, token = paths
        token.write_text("{}")
        stored.creds = FakeCreds(valid=True)

        creds = DriveCredentialProvider(secrets, token).acquire()

        assert creds is stored.creds
        assert FakeFlow.runs == 0

    def test_expired_token_refreshed_and_saved(self, paths, stored, flow):
        secrets, token = paths
        token.write_text("{}")
        stored.creds = FakeCreds(valid=False, expired=True)

        creds = DriveCredentialProvider(secrets, token).acquire()

        assert creds.refreshed
        assert json.loads(token.read_text())["token"] == "abc"
        assert FakeFlow.runs == 0

    def test_refresh_failure_reauthorises(self, paths, stored, flow):
        secrets, token = paths
        secrets.write_text("{}")
        token.write_text("{}")
        stored.creds = FakeCreds(valid=False, expired=True, refresh_error=RefreshError("revoked"))

        creds = DriveCredentialProvider(secrets, token).acquire()

        assert creds is flow
        assert FakeFlow.runs == 1

    def test_no_token_runs_flow_and_persists(self, paths, stored, flow):
        secrets, token = paths
        secrets.write_text("{}")

        creds = DriveCredentialProvider(secrets, token).acquire()

        assert creds is flow
        assert token.exists()

    def test_no_token_no_secrets(self, paths, stored, flow):
        secrets, token = paths
        with pytest.raises(FileNotFoundError):
            DriveCredentialProvider(secrets, token).acquire()


class TestPersist:
    """Token file writing."""

    @pytest.mark.skipif(sys.platform == "win32", reason="POSIX permissions")
    def test_owner_only_permissions(self, paths):
        secrets, token = paths
        DriveCredentialProvider(secrets, token).persist(FakeCreds())
        assert os.stat(token).st_mode & 0o777 == 0o600

    def test_creates_parent_dir(self, tmp_path):
        token = tmp_path / "auth" / "token.json"
        DriveCredentialProvider(tmp_path / "c.json", token).persist(FakeCreds())
        assert json.loads(token.read_text())["refresh_token"] == "r"
