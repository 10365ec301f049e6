# tests/core_client/test_pool_gateway.py
import pytest
import pytest_asyncio
from unittest.mock import AsyncMock

from vpool_core.core.datatypes import PoolCategory
from vpool_core.core.exceptions import (
    AlreadyMemberError,
    CollaboratorError,
    CollaboratorUnavailableError,
    NoOpCategoryChangeError,
    NotMemberError,
)
from vpool_core.core_client.pool_gateway import IntentKind, PoolCommandGateway


@pytest_asyncio.fixture
async def gateway(hydrated_registry, clock):
    return PoolCommandGateway(hydrated_registry, timeout_seconds=1.0, clock=clock)


async def test_join_emits_intent(gateway, provider, accounts, clock):
    intent = await gateway.join(accounts.eve, "MeritValidator")

    assert intent.kind is IntentKind.JOIN
    assert intent.identity == accounts.eve
    assert intent.category is PoolCategory.MERIT
    assert intent.snapshot_sequence == 1
    assert intent.submitted_at == clock.now
    assert intent.receipt.startswith("0x")
    assert [s.kind for s in provider.submitted] == ["join"]


async def test_join_existing_member_rejected_before_submission(gateway, provider, accounts):
    with pytest.raises(AlreadyMemberError) as excinfo:
        await gateway.join(accounts.alice, PoolCategory.MERIT)

    assert excinfo.value.category == "StakeValidator"
    assert provider.submitted == []


async def test_leave(gateway, provider, accounts):
    intent = await gateway.leave(accounts.bob)

    assert intent.kind is IntentKind.LEAVE
    assert intent.category is None
    assert provider.submitted[0].identity == accounts.bob


async def test_leave_non_member_rejected(gateway, provider, accounts):
    with pytest.raises(NotMemberError):
        await gateway.leave(accounts.eve)
    assert provider.submitted == []


async def test_recategorize(gateway, provider, accounts):
    intent = await gateway.recategorize(accounts.charlie, PoolCategory.STAKE)

    assert intent.kind is IntentKind.RECATEGORIZE
    assert intent.category is PoolCategory.STAKE
    assert provider.submitted[0].kind == "recategorize"


async def test_recategorize_non_member_rejected(gateway, provider, accounts):
    with pytest.raises(NotMemberError):
        await gateway.recategorize(accounts.eve, PoolCategory.STAKE)
    assert provider.submitted == []


async def test_recategorize_to_same_category_rejected(gateway, provider, accounts):
    with pytest.raises(NoOpCategoryChangeError):
        await gateway.recategorize(accounts.bob, "ParliamentaryValidator")
    assert provider.submitted == []


async def test_gateway_never_mutates_registry(gateway, hydrated_registry, accounts):
    await gateway.join(accounts.eve, PoolCategory.MERIT)
    await gateway.leave(accounts.alice)

    assert not hydrated_registry.is_member(accounts.eve)
    assert hydrated_registry.is_member(accounts.alice)


async def test_changes_visible_only_after_next_hydration(gateway, hydrated_registry, provider, accounts):
    provider.auto_apply = True
    await gateway.join(accounts.eve, PoolCategory.MERIT)
    await gateway.recategorize(accounts.charlie, PoolCategory.PARLIAMENTARY)

    provider.advance_blocks(1)
    assert not hydrated_registry.is_member(accounts.eve)

    await hydrated_registry.hydrate()
    assert hydrated_registry.category_of(accounts.eve) is PoolCategory.MERIT
    assert hydrated_registry.category_of(accounts.charlie) is PoolCategory.PARLIAMENTARY

    # Preconditions now run against the new snapshot.
    with pytest.raises(AlreadyMemberError):
        await gateway.join(accounts.eve, PoolCategory.STAKE)


async def test_unhydrated_registry_rejects_intents(registry, provider, accounts):
    gateway = PoolCommandGateway(registry, timeout_seconds=1.0)

    with pytest.raises(CollaboratorUnavailableError):
        await gateway.join(accounts.eve, PoolCategory.MERIT)
    assert provider.submitted == []


async def test_provider_failure_surfaces_as_collaborator_error(gateway, provider, accounts):
    provider.available = False

    with pytest.raises(CollaboratorError):
        await gateway.leave(accounts.alice)


async def test_uses_injected_provider(hydrated_registry, accounts):
    chain = AsyncMock()
    chain.submit_leave.return_value = "0xabc"
    gateway = PoolCommandGateway(hydrated_registry, provider=chain, timeout_seconds=1.0)

    intent = await gateway.leave(accounts.dave)

    chain.submit_leave.assert_awaited_once_with(accounts.dave)
    assert intent.receipt == "0xabc"


async def test_intent_metrics(gateway, provider, accounts, clean_metrics):
    await gateway.join(accounts.eve, PoolCategory.MERIT)
    with pytest.raises(NotMemberError):
        await gateway.leave(accounts.eve)
    provider.available = False
    with pytest.raises(CollaboratorError):
        await gateway.leave(accounts.alice)

    assert clean_metrics.get_sample("pool_intents_total", {"kind": "join", "status": "submitted"}) == 1
    assert clean_metrics.get_sample("pool_intents_total", {"kind": "leave", "status": "rejected"}) == 1
    assert clean_metrics.get_sample("pool_intents_total", {"kind": "leave", "status": "failed"}) == 1
