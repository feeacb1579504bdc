"""
Proposal drafts, terms templates, status transitions and sending.
"""
import asyncio

import pytest

from travel_pricing.engine.models import MarkupSettings, PaxDetails, PricingRequest
from travel_pricing.exceptions import ProposalValidationError, TemplateNotFoundError
from travel_pricing.services.proposal_service import ContactDetails, ProposalService
from travel_pricing.services.pricing_service import PricingService
from travel_pricing.services.terms_service import TermsConditions, TermsService, default_terms
from travel_pricing.sync import PricingSync


@pytest.fixture
def terms_service(storage):
    return TermsService(storage)


@pytest.fixture
def proposals(storage, terms_service, notifier):
    return ProposalService(storage, terms_service, notifier, send_delay_seconds=0)


@pytest.fixture
def snapshot(engine):
    return engine.calculate(PricingRequest(
        enquiry_id='ENQ-1',
        pax=PaxDetails(adults=2, children=1),
        destination_country='TH',
        base_cost_override=1000,
    ))


AGENT = ContactDetails(name='Asha', email='asha@example.com', phone='+66 555 0100', company='Blue Lagoon Travel')


def test_new_draft_defaults(proposals):
    draft = proposals.get_draft('ENQ-1')
    assert draft.status == 'draft'
    assert draft.pricing is None
    assert draft.terms is None


def test_draft_becomes_ready_with_pricing_and_terms(proposals, snapshot):
    assert proposals.attach_pricing('ENQ-1', snapshot).status == 'draft'
    draft = proposals.apply_default_terms('ENQ-1')

    assert draft.status == 'ready'
    assert draft.terms == default_terms()
    assert proposals.get_draft('ENQ-1').pricing == snapshot


def test_validation_lists_every_reason(proposals):
    draft = proposals.get_draft('ENQ-1')

    errors = proposals.validate_for_send(draft, ContactDetails(), 'email')
    assert errors == [
        "Pricing not configured",
        "Terms & conditions not set",
        "Agent email not provided for email communication",
    ]

    errors = proposals.validate_for_send(draft, ContactDetails(email='a@b.c'), 'whatsapp')
    assert "Agent phone not provided for WhatsApp communication" in errors


def test_send_rejected_without_pricing(proposals, notifier):
    proposals.apply_default_terms('ENQ-1')

    with pytest.raises(ProposalValidationError) as exc_info:
        asyncio.run(proposals.send_proposal('ENQ-1', AGENT, 'email'))

    assert exc_info.value.errors == ["Pricing not configured"]
    assert proposals.get_draft('ENQ-1').status == 'draft'
    assert proposals.send_history('ENQ-1') == []
    assert notifier.recent()[-1].level == 'error'


def test_send_records_history_and_marks_sent(proposals, snapshot, notifier):
    proposals.attach_pricing('ENQ-1', snapshot)
    proposals.apply_default_terms('ENQ-1')

    record = asyncio.run(proposals.send_proposal('ENQ-1', AGENT, 'whatsapp'))

    assert record.method == 'whatsapp'
    assert record.sent_to == AGENT.phone
    assert record.snapshot['final_price'] == pytest.approx(snapshot.final_price)
    assert proposals.get_draft('ENQ-1').status == 'sent'
    assert [r.sent_at for r in proposals.send_history('ENQ-1')] == [record.sent_at]
    assert notifier.recent()[-1].level == 'success'


def test_history_keeps_snapshot_at_send_time(proposals, snapshot, engine):
    proposals.attach_pricing('ENQ-1', snapshot)
    proposals.apply_default_terms('ENQ-1')
    asyncio.run(proposals.send_proposal('ENQ-1', AGENT))

    repriced = engine.calculate(PricingRequest(enquiry_id='ENQ-1', pax=PaxDetails(adults=2), base_cost_override=5000))
    proposals.attach_pricing('ENQ-1', repriced)
    asyncio.run(proposals.send_proposal('ENQ-1', AGENT))

    history = proposals.send_history('ENQ-1')
    assert [r.snapshot['base_cost'] for r in history] == [1000, 5000]


def test_edits_after_send_keep_status_until_reset(proposals, snapshot):
    proposals.attach_pricing('ENQ-1', snapshot)
    proposals.apply_default_terms('ENQ-1')
    asyncio.run(proposals.send_proposal('ENQ-1', AGENT))

    assert proposals.update_terms('ENQ-1', TermsConditions(payment_terms='Full prepayment')).status == 'sent'
    assert proposals.reset_status('ENQ-1').status == 'ready'


def test_send_waits_for_delivery_delay(storage, terms_service, notifier, snapshot):
    proposals = ProposalService(storage, terms_service, notifier, send_delay_seconds=0.05)
    proposals.attach_pricing('ENQ-1', snapshot)
    proposals.apply_default_terms('ENQ-1')

    async def send_and_check():
        task = asyncio.create_task(proposals.send_proposal('ENQ-1', AGENT))
        await asyncio.sleep(0)
        assert proposals.get_draft('ENQ-1').status == 'ready'
        return await task

    asyncio.run(send_and_check())
    assert proposals.get_draft('ENQ-1').status == 'sent'


def test_corrupt_draft_starts_fresh(proposals, storage):
    storage.set_item(proposals.draft_key('ENQ-1'), '{"pricing": {broken')
    assert proposals.get_draft('ENQ-1').status == 'draft'
    assert storage.get_item(proposals.draft_key('ENQ-1')) is None


def test_draft_follows_committed_pricing(engine, storage, proposals):
    sync = PricingSync(storage, debounce_seconds=0)
    pricing = PricingService(engine, sync)
    proposals.track_pricing(sync, 'ENQ-1')
    proposals.track_pricing(sync, 'ENQ-1')
    assert sync.subscriber_count('ENQ-1') == 1

    pricing.recalculate(PricingRequest(enquiry_id='ENQ-1', pax=PaxDetails(adults=1), base_cost_override=750))
    assert proposals.get_draft('ENQ-1').pricing.base_cost == 750

    proposals.untrack_pricing('ENQ-1')
    assert sync.subscriber_count('ENQ-1') == 0


def test_summary_text(proposals, snapshot):
    proposals.attach_pricing('ENQ-1', snapshot)
    proposals.apply_default_terms('ENQ-1')

    text = proposals.render_summary('ENQ-1')
    assert "Travelers: 2 adults, 1 children" in text
    assert f"TOTAL COST: THB {snapshot.final_price:,.2f}" in text
    assert "Daily breakfast at the hotel" in text

    text = proposals.render_summary('ENQ-1', separate_adult_child=False, include_terms=False)
    assert "Package Cost:" in text
    assert "TERMS" not in text


def test_terms_templates(terms_service):
    custom = TermsConditions(payment_terms='50% on booking', inclusions=['Desert safari'])
    template = terms_service.save_template('Dubai standard', custom, country='ae')

    assert template.country == 'AE'
    assert terms_service.default_terms('AE') == custom
    assert terms_service.default_terms('TH') == default_terms()

    # Same name and country replaces the old template
    terms_service.save_template('Dubai standard', TermsConditions(payment_terms='Full'), country='AE')
    assert len(terms_service.list_templates(country='AE')) == 1

    terms_service.delete_template(terms_service.list_templates()[0].id)
    assert terms_service.list_templates() == []
    with pytest.raises(TemplateNotFoundError):
        terms_service.delete_template('tpl_missing')


def test_default_terms_for_country_template(proposals, terms_service):
    terms_service.save_template('Thai', TermsConditions(validity='7 days'), country='TH')
    assert proposals.apply_default_terms('ENQ-9', 'TH').terms.validity == '7 days'


def test_pricing_committed_during_send_is_kept(engine, storage, terms_service, notifier):
    sync = PricingSync(storage, debounce_seconds=0)
    pricing = PricingService(engine, sync)
    proposals = ProposalService(storage, terms_service, notifier, send_delay_seconds=0.05)
    proposals.track_pricing(sync, 'ENQ-1')
    proposals.apply_default_terms('ENQ-1')

    def request(pct):
        return PricingRequest(
            enquiry_id='ENQ-1',
            pax=PaxDetails(adults=1),
            base_cost_override=1000,
            markup=MarkupSettings(type='percentage', value=pct),
        )

    pricing.recalculate(request(10))

    async def send_while_repricing():
        task = asyncio.create_task(proposals.send_proposal('ENQ-1', AGENT))
        await asyncio.sleep(0)
        pricing.recalculate(request(50))
        return await task

    record = asyncio.run(send_while_repricing())

    draft = proposals.get_draft('ENQ-1')
    assert draft.status == 'sent'
    assert draft.pricing.final_price == pytest.approx(pricing.get('ENQ-1').final_price)
    assert draft.pricing.markup.amount == pytest.approx(500)
    assert record.snapshot['markup']['amount'] == pytest.approx(500)
