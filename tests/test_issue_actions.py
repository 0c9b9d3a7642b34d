"""Action registry and the 'opened' provisioning handler."""

from __future__ import annotations

import pytest

from src.drive.provisioner import FolderProvisioner
from src.integrations.issue_actions import ActionRegistry, build_registry, issue_folder_name

from tests.fakes.fake_drive import FakeDrive


class TestRegistry:
    def test_register_and_lookup(self):
        async def handler(payload):
            return None

        r = ActionRegistry()
        r.register("opened", handler)
        assert "opened" in r
        assert "closed" not in r
        assert r.get("opened") is handler
        assert r.actions() == frozenset({"opened"})

    def test_default_registry_handles_opened(self, fake_drive):
        r = build_registry(FolderProvisioner(fake_drive, "Issues"))
        assert r.actions() == frozenset({"opened"})


class TestIssueFolderName:
    def test_number_and_title(self):
        assert issue_folder_name({"number": 42, "title": " Broken login "}) == "42 - Broken login"

    def test_number_only(self):
        assert issue_folder_name({"number": 7, "title": None}) == "7"

    def test_missing_number(self):
        with pytest.raises(ValueError):
            issue_folder_name({"title": "x"})


class TestProvisionHandler:
    @pytest.mark.asyncio
    async def test_creates_workspace_and_issue_folder(self, fake_drive: FakeDrive):
        handler = build_registry(FolderProvisioner(fake_drive, "Issues")).get("opened")
        await handler({"action": "opened", "issue": {"number": 42, "title": "Broken login"}})
        [workspace] = fake_drive.named("Issues")
        [issue] = fake_drive.named("42 - Broken login")
        assert issue["parents"] == [workspace["id"]]

    @pytest.mark.asyncio
    async def test_reuses_existing_folders(self, fake_drive: FakeDrive):
        ws = fake_drive.add("Issues")
        fake_drive.add("42 - Broken login", [ws])
        handler = build_registry(FolderProvisioner(fake_drive, "Issues")).get("opened")
        await handler({"action": "opened", "issue": {"number": 42, "title": "Broken login"}})
        assert fake_drive.create_calls == []

    @pytest.mark.asyncio
    async def test_workspace_failure_is_logged(self, fake_drive: FakeDrive, caplog):
        fake_drive.fail_list = True
        handler = build_registry(FolderProvisioner(fake_drive, "Issues")).get("opened")
        await handler({"action": "opened", "issue": {"number": 1, "title": "x"}})
        assert fake_drive.create_calls == []
        assert "Workspace 'Issues' unavailable" in caplog.text

    @pytest.mark.asyncio
    async def test_bad_payload_is_logged_not_raised(self, fake_drive: FakeDrive, caplog):
        handler = build_registry(FolderProvisioner(fake_drive, "Issues")).get("opened")
        await handler({"action": "opened"})
        assert "Provisioning failed" in caplog.text
        assert fake_drive.create_calls == []
