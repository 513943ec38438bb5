"""Sync progress notifications over the Django Channels layer."""

from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer

from mailsync_core.utils.logging import ContextLogger

from .. import config
from .interfaces import SyncStatusPublisher

logger = ContextLogger(__name__)


def status_group_name(account_id) -> str:
    return f"{config.get_config('STATUS_GROUP_PREFIX')}_{account_id}"


class ChannelLayerStatusPublisher(SyncStatusPublisher):
    """Sends ``mailbox.sync_status`` events to the account's channel group."""

    def __init__(self, channel_layer=None):
        self.channel_layer = channel_layer or get_channel_layer()

    def publish(self, account_id, mailbox_id, status, last_sync_result=None):
        if self.channel_layer is None:
            return

        async_to_sync(self.channel_layer.group_send)(
            status_group_name(account_id),
            {
                "type": "mailbox.sync_status",
                "mailbox_id": mailbox_id,
                "status": str(status),
                "last_sync_result": last_sync_result,
            },
        )
        logger.debug(
            "Published mailbox sync status",
            extra={"mailbox_id": mailbox_id, "status": str(status)},
        )
