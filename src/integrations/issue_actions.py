"""Issue action handlers - what a scheduled job does for each issues action."""
import logging
from typing import Any, Awaitable, Callable

from src.drive.provisioner import FolderProvisioner

logger = logging.getLogger(__name__)

ActionHandler = Callable[[dict[str, Any]], Awaitable[None]]


class ActionRegistry:
    """Action name -> async handler. The registered names are the supported actions."""

    def __init__(self):
        self._handlers: dict[str, ActionHandler] = {}

    def register(self, action: str, fn: ActionHandler) -> None:
        self._handlers[action] = fn

    def get(self, action: str) -> ActionHandler:
        return self._handlers[action]

    def actions(self) -> frozenset[str]:
        return frozenset(self._handlers)

    def __contains__(self, action: object) -> bool:
        return action in self._handlers


def issue_folder_name(issue: dict[str, Any]) -> str:
    """'<number> - <title>', or just the number when the issue has no title."""
    number = issue.get("number")
    title = (issue.get("title") or "").strip()
    if number is None:
        raise ValueError("Issue payload has no number")
    return f"{number} - {title}" if title else str(number)


def make_provision_handler(provisioner: FolderProvisioner) -> ActionHandler:
    """Handler for 'opened': ensure the workspace, then the issue's folder inside it."""

    async def provision_issue_folder(payload: dict[str, Any]) -> None:
        try:
            issue = payload.get("issue") or {}
            name = issue_folder_name(issue)
            workspace = await provisioner.workspace()
            if not workspace.ok:
                logger.error("Workspace '%s' unavailable (%s), issue folder not created", provisioner.work_dir, workspace.error)
                return
            result = await provisioner.ensure_folder(name, [workspace.folder.id])
            if result.ok:
                logger.info("Issue folder '%s' %s (%s)", name, result.status.value, result.folder.id)
            else:
                logger.error("Issue folder '%s' not provisioned: %s", name, result.error)
        except Exception:
            logger.exception("Provisioning failed for issue payload")

    return provision_issue_folder


def build_registry(provisioner: FolderProvisioner) -> ActionRegistry:
    registry = ActionRegistry()
    registry.register("opened", make_provision_handler(provisioner))
    return registry
