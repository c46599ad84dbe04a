import pytest
from protean import current_domain
from protean.integrations.pytest import DomainFixture
from storefront.modifiers.chain import reset_modifier_chain
from storefront.payments.gateway import reset_gateway


@pytest.fixture(scope="session")
def storefront_bed():
    from storefront.domain import storefront

    bed = DomainFixture(storefront)
    bed.setup()
    yield bed
    bed.teardown()


@pytest.fixture(autouse=True)
def _ctx(storefront_bed):
    with storefront_bed.domain_context():
        yield

        for _, provider in current_domain.providers.items():
            provider._data_reset()
        current_domain.event_store.store._data_reset()

    reset_modifier_chain()
    reset_gateway()
