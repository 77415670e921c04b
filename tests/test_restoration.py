"""
Tests for spamshield/services/antispam/restoration.py
"""

import pytest

from spamshield.services.antispam.models import RoleSnapshot
from spamshield.services.antispam.restoration import (
    MemberNotFound,
    RestorationError,
    RestorationService,
    SnapshotNotFound,
)

from conftest import (
    BASE_TIME,
    COMPROMISED_ROLE_ID,
    HIGH_ROLE_ID,
    PRESERVED_ROLE_ID,
    USER_ID,
    FakeGateway,
)


ORIGINAL_ROLES = (10, 11, PRESERVED_ROLE_ID, HIGH_ROLE_ID)


@pytest.fixture
def restoration(antispam_config, snapshots):
    return RestorationService(antispam_config, snapshots)


@pytest.fixture
def quarantined_gateway():
    """Member after quarantine: roles stripped, compromised role applied, timed out."""
    gateway = FakeGateway(
        member_roles={USER_ID: {PRESERVED_ROLE_ID, HIGH_ROLE_ID, COMPROMISED_ROLE_ID}},
        manageable_role_ids={10, 11, PRESERVED_ROLE_ID, COMPROMISED_ROLE_ID},
    )
    gateway.timeouts[USER_ID] = 86400000
    return gateway


@pytest.fixture
def stored(snapshots):
    snapshot = RoleSnapshot(
        user_id=USER_ID,
        role_ids=ORIGINAL_ROLES,
        captured_at=BASE_TIME,
        reason="Anti-spam detection",
        display_name="spammer#0001",
    )
    snapshots.save(snapshot)
    return snapshot


# =============================================================================
# Successful Restore
# =============================================================================

class TestRestore:
    """Tests for RestorationService.restore."""

    @pytest.mark.asyncio
    async def test_roles_back_to_snapshot(self, restoration, quarantined_gateway, stored):
        result = await restoration.restore(USER_ID, quarantined_gateway, actor_name="mod#0001")

        assert quarantined_gateway.member_roles[USER_ID] == set(ORIGINAL_ROLES)
        assert result.restored_count == 4
        assert result.total == 4
        assert result.failed_role_ids == []

    @pytest.mark.asyncio
    async def test_compromised_role_removed_first(self, restoration, quarantined_gateway, stored):
        await restoration.restore(USER_ID, quarantined_gateway)

        first = quarantined_gateway.calls[0]
        assert first == ("remove_role", USER_ID, COMPROMISED_ROLE_ID)

    @pytest.mark.asyncio
    async def test_timeout_cleared(self, restoration, quarantined_gateway, stored):
        await restoration.restore(USER_ID, quarantined_gateway)
        assert quarantined_gateway.timeouts[USER_ID] is None

    @pytest.mark.asyncio
    async def test_snapshot_removed(self, restoration, snapshots, quarantined_gateway, stored):
        await restoration.restore(USER_ID, quarantined_gateway)
        assert snapshots.get(USER_ID) is None

    @pytest.mark.asyncio
    async def test_second_restore_raises(self, restoration, quarantined_gateway, stored):
        await restoration.restore(USER_ID, quarantined_gateway)

        with pytest.raises(SnapshotNotFound):
            await restoration.restore(USER_ID, quarantined_gateway)

    @pytest.mark.asyncio
    async def test_no_compromised_role_configured(self, antispam_config, snapshots, quarantined_gateway, stored):
        antispam_config.compromised_role_id = None
        service = RestorationService(antispam_config, snapshots)

        await service.restore(USER_ID, quarantined_gateway)

        assert quarantined_gateway.calls_named("remove_role") == []


# =============================================================================
# Failures
# =============================================================================

class TestRestoreFailures:
    """Tests for restore failure paths."""

    @pytest.mark.asyncio
    async def test_no_snapshot(self, restoration, quarantined_gateway):
        with pytest.raises(SnapshotNotFound) as exc_info:
            await restoration.restore(USER_ID, quarantined_gateway)

        assert exc_info.value.user_id == USER_ID
        assert quarantined_gateway.calls == []

    @pytest.mark.asyncio
    async def test_member_gone_keeps_snapshot(self, restoration, snapshots, stored):
        gateway = FakeGateway(member_roles={})

        with pytest.raises(MemberNotFound):
            await restoration.restore(USER_ID, gateway)

        assert snapshots.get(USER_ID) is stored
        assert gateway.calls == []

    @pytest.mark.asyncio
    async def test_partial_failure_reported(self, restoration, snapshots, quarantined_gateway, stored):
        quarantined_gateway.fail_role_ids = {11, HIGH_ROLE_ID}

        result = await restoration.restore(USER_ID, quarantined_gateway)

        assert result.restored_count == 2
        assert result.failed_role_ids == [11, HIGH_ROLE_ID]
        assert result.total == 4
        assert snapshots.get(USER_ID) is None

    @pytest.mark.asyncio
    async def test_timeout_failure_does_not_raise(self, restoration, quarantined_gateway, stored):
        quarantined_gateway.timeout_fails = True

        result = await restoration.restore(USER_ID, quarantined_gateway)

        assert result.restored_count == 4

    def test_errors_share_base_class(self):
        assert issubclass(SnapshotNotFound, RestorationError)
        assert issubclass(MemberNotFound, RestorationError)
