"""Cloud Servers API client.

Resource operations for servers, images, flavors, shared IP groups and
account limits. Each operation hands a path, an optional body and an
optional verb to :class:`ApiCallExecutor` and picks one top-level key out
of the decoded response. Action endpoints report success from the HTTP
status alone.
"""

from typing import Any

import httpx
import structlog

from .executor import DEFAULT_TIMEOUT, ApiCallExecutor
from .session import DEFAULT_AUTH_URL
from .types import BackupSchedule, Credentials, RebootType

logger = structlog.get_logger(__name__)

ACCEPTED = 202
NO_CONTENT = 204


def _extract(data: Any, key: str) -> Any | None:
    """Return ``data[key]`` if the decoded response is a mapping holding it."""
    if isinstance(data, dict):
        return data.get(key)
    return None


def _list_path(base: str, detailed: bool) -> str:
    return f"{base}/detail" if detailed else base


class CloudServersClient:
    """Client for the Rackspace Cloud Servers v1.0 API.

    Authentication happens on the first call and the resulting session is
    kept for the lifetime of the client; there is no automatic refresh.
    Informational operations return the extracted value or None, action
    operations return True only when the expected status was observed.
    The status of the last request is exposed through
    :attr:`last_response_status` and :meth:`status_message`.

    Not thread-safe. Can be used as a context manager for automatic cleanup.
    """

    def __init__(
        self,
        username: str,
        api_key: str,
        auth_url: str = DEFAULT_AUTH_URL,
        timeout: float = DEFAULT_TIMEOUT,
        transport: httpx.BaseTransport | None = None,
    ):
        """Initialize the client.

        Args:
            username: Account username.
            api_key: Account API key.
            auth_url: URL of the authentication service.
            timeout: Request timeout in seconds (default: 10.0).
            transport: Optional httpx transport, mainly for tests.

        Raises:
            ValueError: If a credential is empty, auth_url is empty or
                timeout is not positive.
        """
        self._executor = ApiCallExecutor(
            credentials=Credentials(username=username, api_key=api_key),
            auth_url=auth_url,
            timeout=timeout,
            transport=transport,
        )

    def __enter__(self):
        """Enter context manager."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Exit context manager and cleanup resources."""
        self.close()

    def close(self):
        """Close the underlying HTTP client."""
        self._executor.close()

    @property
    def last_response_status(self) -> int | None:
        """HTTP status of the last request, or None if it did not complete."""
        return self._executor.tracker.last_status

    def status_message(self) -> str:
        """Human readable description of :attr:`last_response_status`."""
        return self._executor.tracker.status_message()

    @property
    def is_authenticated(self) -> bool:
        return self._executor.session.is_authenticated

    def invalidate_session(self) -> None:
        """Forget the session token so the next call authenticates again."""
        self._executor.session.clear()
        logger.info("Session invalidated")

    def _status_is(self, expected: int) -> bool:
        return self._executor.tracker.last_status == expected

    # Account

    def limits(self) -> dict | None:
        """Get the rate and absolute limits of this account."""
        return _extract(self._executor.call("/limits"), "limits")

    # Flavors

    def flavor_list(self, detailed: bool = False) -> list | None:
        """List the available flavors (hardware configurations).

        Args:
            detailed: If True, include RAM and disk for each flavor.
        """
        data = self._executor.call(_list_path("/flavors", detailed))
        return _extract(data, "flavors")

    def flavor_details(self, flavor_id: int) -> dict | None:
        return _extract(self._executor.call(f"/flavors/{flavor_id}"), "flavor")

    # Images

    def image_list(self, detailed: bool = False) -> list | None:
        """List the images available to this account.

        Args:
            detailed: If True, include status, progress and timestamps.
        """
        data = self._executor.call(_list_path("/images", detailed))
        return _extract(data, "images")

    def image_create(self, name: str, server_id: int) -> dict | None:
        """Create an image (snapshot) of a server.

        Args:
            name: Name of the new image.
            server_id: ID of the server to take the image from.

        Returns:
            The new image's details, or None.
        """
        body = {"image": {"serverId": server_id, "name": name}}
        return _extract(self._executor.call("/images", body), "image")

    def image_details(self, image_id: int) -> dict | None:
        return _extract(self._executor.call(f"/images/{image_id}"), "image")

    def image_delete(self, image_id: int) -> bool:
        self._executor.call(f"/images/{image_id}", method="DELETE")
        return self._status_is(NO_CONTENT)

    # Servers

    def server_list(self, detailed: bool = False) -> list | None:
        """List the servers of this account.

        Args:
            detailed: If True, include status, addresses and metadata.
        """
        data = self._executor.call(_list_path("/servers", detailed))
        return _extract(data, "servers")

    def server_create(
        self,
        name: str,
        image_id: int,
        flavor_id: int,
        shared_ip_group_id: int | None = None,
        metadata: dict[str, str] | None = None,
    ) -> dict | None:
        """Create a new server.

        Args:
            name: Friendly name of the server.
            image_id: ID of the image to build from.
            flavor_id: ID of the hardware configuration.
            shared_ip_group_id: Optional shared IP group to place it in.
            metadata: Optional key/value metadata.

        Returns:
            The new server's details including the generated admin
            password, or None.
        """
        server: dict[str, Any] = {
            "name": name,
            "imageId": image_id,
            "flavorId": flavor_id,
        }
        if shared_ip_group_id is not None:
            server["sharedIpGroupId"] = shared_ip_group_id
        if metadata:
            server["metadata"] = metadata
        return _extract(self._executor.call("/servers", {"server": server}), "server")

    def server_details(self, server_id: int) -> dict | None:
        return _extract(self._executor.call(f"/servers/{server_id}"), "server")

    def server_update(
        self,
        server_id: int,
        name: str | None = None,
        admin_pass: str | None = None,
    ) -> bool:
        """Rename a server and/or change its admin password.

        Raises:
            ValueError: If neither name nor admin_pass is given.
        """
        server = {}
        if name is not None:
            server["name"] = name
        if admin_pass is not None:
            server["adminPass"] = admin_pass
        if not server:
            msg = "server_update needs a name or an admin_pass"
            raise ValueError(msg)

        self._executor.call(f"/servers/{server_id}", {"server": server}, "PUT")
        return self._status_is(NO_CONTENT)

    def server_delete(self, server_id: int) -> bool:
        self._executor.call(f"/servers/{server_id}", method="DELETE")
        return self._status_is(ACCEPTED)

    def server_ips(self, server_id: int) -> dict | None:
        """Get the public and private addresses of a server."""
        data = self._executor.call(f"/servers/{server_id}/ips")
        return _extract(data, "addresses")

    def server_address_share(
        self,
        server_id: int,
        ip_address: str,
        shared_ip_group_id: int,
        configure: bool = False,
    ) -> bool:
        """Share an IP address from a shared IP group with a server.

        Args:
            server_id: Server that receives the address.
            ip_address: The public address to share.
            shared_ip_group_id: Group the address belongs to.
            configure: If True, the server is configured with the address
                and rebooted.
        """
        share: dict[str, Any] = {"sharedIpGroupId": shared_ip_group_id}
        if configure:
            share["configureServer"] = True
        self._executor.call(
            f"/servers/{server_id}/ips/public/{ip_address}",
            {"shareIp": share},
            "PUT",
        )
        return self._status_is(ACCEPTED)

    def server_address_unshare(self, server_id: int, ip_address: str) -> bool:
        self._executor.call(
            f"/servers/{server_id}/ips/public/{ip_address}",
            method="DELETE",
        )
        return self._status_is(ACCEPTED)

    def _server_action(self, server_id: int, action: dict) -> None:
        self._executor.call(f"/servers/{server_id}/action", action)

    def server_reboot(
        self,
        server_id: int,
        reboot_type: RebootType = RebootType.SOFT,
    ) -> bool:
        """Reboot a server.

        A soft reboot asks the OS to restart; a hard reboot power cycles
        the server.
        """
        reboot_type = RebootType(reboot_type)
        self._server_action(server_id, {"reboot": {"type": reboot_type.value}})
        return self._status_is(ACCEPTED)

    def server_resize(self, server_id: int, flavor_id: int) -> bool:
        """Start resizing a server to another flavor.

        The resize must later be confirmed or reverted.
        """
        self._server_action(server_id, {"resize": {"flavorId": flavor_id}})
        return self._status_is(ACCEPTED)

    def server_confirm_resize(self, server_id: int) -> bool:
        self._server_action(server_id, {"confirmResize": None})
        return self._status_is(NO_CONTENT)

    def server_revert_resize(self, server_id: int) -> bool:
        self._server_action(server_id, {"revertResize": None})
        return self._status_is(ACCEPTED)

    def server_backup_schedule(self, server_id: int) -> dict | None:
        data = self._executor.call(f"/servers/{server_id}/backup_schedule")
        return _extract(data, "backupSchedule")

    def server_backup_schedule_update(
        self,
        server_id: int,
        schedule: BackupSchedule,
    ) -> bool:
        self._executor.call(
            f"/servers/{server_id}/backup_schedule",
            schedule.as_body(),
        )
        return self._status_is(NO_CONTENT)

    def server_backup_schedule_delete(self, server_id: int) -> bool:
        self._executor.call(
            f"/servers/{server_id}/backup_schedule",
            method="DELETE",
        )
        return self._status_is(NO_CONTENT)

    # Shared IP groups

    def shared_ip_group_list(self, detailed: bool = False) -> list | None:
        """List shared IP groups.

        Args:
            detailed: If True, include the member servers of each group.
        """
        data = self._executor.call(_list_path("/shared_ip_groups", detailed))
        return _extract(data, "sharedIpGroups")

    def shared_ip_group_create(
        self,
        name: str,
        server_id: int | None = None,
    ) -> dict | None:
        """Create a shared IP group, optionally seeded with one server."""
        group: dict[str, Any] = {"name": name}
        if server_id is not None:
            group["server"] = server_id
        data = self._executor.call("/shared_ip_groups", {"sharedIpGroup": group})
        return _extract(data, "sharedIpGroup")

    def shared_ip_group_details(self, shared_ip_group_id: int) -> dict | None:
        data = self._executor.call(f"/shared_ip_groups/{shared_ip_group_id}")
        return _extract(data, "sharedIpGroup")

    def shared_ip_group_delete(self, shared_ip_group_id: int) -> bool:
        self._executor.call(
            f"/shared_ip_groups/{shared_ip_group_id}",
            method="DELETE",
        )
        return self._status_is(NO_CONTENT)
