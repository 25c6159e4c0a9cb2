"""Exchange graph construction for listings.

Every listing becomes one proposal with a reciprocal pair of intent roles:

- primary intents, one per service type, action ``work``
- one reciprocal intent, action ``transfer``, for the medium of exchange

A Request's agent receives the service and provides the payment; an Offer's
agent provides the service and receives the payment.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from reabridge.domain.model import (
    EntityKind,
    ExchangeGraph,
    IntentAction,
    IntentDraft,
    ListingKind,
    ProposalDraft,
    Quantity,
    Request,
)

from .errors import InvalidListingError
from .references import encode

if TYPE_CHECKING:
    from reabridge.domain.model import Listing

    from .contracts import Resolved


def proposal_name(listing: Listing) -> str:
    return f"{listing.listing_kind.label}: {listing.title.strip()}"


def proposal_note(listing: Listing) -> str:
    return encode(EntityKind.PROPOSAL, listing.local_id)


def _service_quantity(listing: Listing) -> Quantity | None:
    if isinstance(listing, Request) and listing.time_estimate_hours is not None:
        return Quantity(listing.time_estimate_hours)
    return None


def build_exchange_graph(listing: Listing, resolved: Resolved) -> ExchangeGraph:
    """Return the proposal and intents that represent ``listing``.

    Raises:
        InvalidListingError: blank title or no resolved service-type specs.
    """

    if not listing.title or not listing.title.strip():
        raise InvalidListingError(
            f"{listing.listing_kind.label} {listing.local_id} has no title"
        )
    if not resolved.resource_spec_ids:
        raise InvalidListingError(
            f"{listing.listing_kind.label} {listing.local_id} has no service types"
        )

    note = proposal_note(listing)
    agent_id = resolved.agent_id
    is_request = listing.listing_kind is ListingKind.REQUEST
    quantity = _service_quantity(listing)

    primary_intents = tuple(
        IntentDraft(
            action=IntentAction.WORK,
            resource_conforms_to=spec_id,
            reciprocal=False,
            receiver=agent_id if is_request else None,
            provider=None if is_request else agent_id,
            quantity=quantity,
            note=note,
        )
        for spec_id in resolved.resource_spec_ids
    )
    reciprocal_intent = IntentDraft(
        action=IntentAction.TRANSFER,
        resource_conforms_to=resolved.medium_of_exchange_spec_id,
        reciprocal=True,
        provider=agent_id if is_request else None,
        receiver=None if is_request else agent_id,
        note=note,
    )
    return ExchangeGraph(
        proposal=ProposalDraft(name=proposal_name(listing), note=note),
        primary_intents=primary_intents,
        reciprocal_intent=reciprocal_intent,
    )
