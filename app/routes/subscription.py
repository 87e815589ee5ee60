"""Subscription management routes: opt-in, unsubscribe, sign-up, export and wipe.

Fixed-prefix routes are declared before `/subscription/{campaign_uuid}/{subscriber_uuid}`
so that e.g. `/subscription/optin/<uuid>` is never taken for an unsubscribe link.
"""

import logging

from fastapi import APIRouter, Depends, Form, Query, Request
from fastapi.responses import HTMLResponse
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import PrivacySettings
from app.database import get_session
from app.dependencies import get_privacy
from app.exceptions import InternalError, InvalidIdentifier, NotFound
from app.schemas.public import (
    parse_optin_request,
    parse_subscription_form,
    parse_unsubscribe_request,
)
from app.services import consent_service, export_service, identifier_service, subscription_service
from app.templating import i18n, render_message, templates
from app.utils.email_masking import mask_email

logger = logging.getLogger(__name__)

router = APIRouter()


async def _optin(
    request: Request,
    db: AsyncSession,
    subscriber_uuid: str,
    list_uuids: list[str],
    confirm: str | None,
) -> HTMLResponse:
    optin = parse_optin_request(subscriber_uuid, list_uuids, confirm)

    if optin.confirm:
        await consent_service.confirm_optin(db, optin.subscriber_uuid, optin.list_uuids)
        return render_message(
            request,
            i18n.T("public.subConfirmedTitle"),
            i18n.T("public.subConfirmed"),
        )

    _, lists = await consent_service.get_pending_lists(db, optin.subscriber_uuid, optin.list_uuids)

    return templates.TemplateResponse(
        request,
        "optin.html",
        {
            "title": i18n.T("public.confirmOptinSubTitle"),
            "sub_uuid": subscriber_uuid,
            "lists": lists,
        },
    )


@router.get("/subscription/optin/{subscriber_uuid}", response_class=HTMLResponse)
async def optin_page(
    request: Request,
    subscriber_uuid: str,
    l: list[str] = Query(default=[]),
    confirm: str | None = Query(None),
    db: AsyncSession = Depends(get_session),
) -> HTMLResponse:
    """
    Double opt-in page linked from opt-in confirmation e-mails.

    **Query Parameters:**
    - `l`: List UUID, repeatable. Without any, all unconfirmed lists are targeted
    - `confirm`: `true` to confirm right away

    **Pages:**
    - Pending lists exist: list of pending lists with a confirm button
    - Nothing pending (already confirmed or wrong list): "no subscriptions" page
    - Unknown or malformed subscriber: not-found page
    """
    return await _optin(request, db, subscriber_uuid, l, confirm)


@router.post("/subscription/optin/{subscriber_uuid}", response_class=HTMLResponse)
async def optin_confirm(
    request: Request,
    subscriber_uuid: str,
    l: list[str] = Form(default=[]),
    confirm: str | None = Form(None),
    db: AsyncSession = Depends(get_session),
) -> HTMLResponse:
    """Confirm subscriptions submitted from the opt-in page form."""
    list_uuids = request.query_params.getlist("l") + l
    return await _optin(request, db, subscriber_uuid, list_uuids, confirm)


@router.get("/subscription/form", response_class=HTMLResponse)
async def subscription_form_page(
    request: Request,
    db: AsyncSession = Depends(get_session),
    privacy: PrivacySettings = Depends(get_privacy),
) -> HTMLResponse:
    """Public subscription form listing every public list."""
    privacy.require("allow_public_subscription")

    lists = await subscription_service.get_public_lists(db)
    if not lists:
        raise InternalError("public.noListsAvailable")

    return templates.TemplateResponse(
        request,
        "subscription-form.html",
        {"title": i18n.T("public.sub"), "lists": lists},
    )


@router.post("/subscription/form", response_class=HTMLResponse)
async def subscription_form(
    request: Request,
    email: str = Form(""),
    name: str = Form(""),
    l: list[str] = Form(default=[]),
    nonce: str | None = Form(None),
    db: AsyncSession = Depends(get_session),
    privacy: PrivacySettings = Depends(get_privacy),
) -> HTMLResponse:
    """
    Handle a public subscription form submission.

    **Form Fields:**
    - `email`: Subscriber e-mail (required)
    - `name`: Display name (defaults to the e-mail's local part)
    - `l`: Public list UUID, repeatable (at least one)
    - `nonce`: Honeypot; must stay empty

    **Pages:**
    - Single opt-in lists only: "subscribed" page
    - Any double opt-in list: "confirmation e-mail sent" page
    """
    privacy.require("allow_public_subscription")

    form = parse_subscription_form(email, name, l, nonce)
    has_optin = await subscription_service.subscribe(db, privacy, form)

    message_key = "public.subOptinPending" if has_optin else "public.subConfirmed"
    return render_message(request, i18n.T("public.subTitle"), i18n.T(message_key))


@router.post("/subscription/export/{subscriber_uuid}", response_class=HTMLResponse)
async def export_data(
    request: Request,
    subscriber_uuid: str,
    db: AsyncSession = Depends(get_session),
    privacy: PrivacySettings = Depends(get_privacy),
) -> HTMLResponse:
    """
    E-mail the subscriber a JSON export of their data.

    The page only confirms that the e-mail was dispatched; the data itself
    travels as an attachment.
    """
    await export_service.send_subscriber_data(db, privacy, subscriber_uuid)

    return render_message(request, i18n.T("public.dataSentTitle"), i18n.T("public.dataSent"))


@router.post("/subscription/wipe/{subscriber_uuid}", response_class=HTMLResponse)
async def wipe_data(
    request: Request,
    subscriber_uuid: str,
    db: AsyncSession = Depends(get_session),
    privacy: PrivacySettings = Depends(get_privacy),
) -> HTMLResponse:
    """
    Delete the subscriber's profile and subscriptions.

    Views and clicks stay behind as anonymous history. Wiping an already
    wiped subscriber shows the regular not-found page.
    """
    try:
        await consent_service.wipe_subscriber(db, privacy, subscriber_uuid)
    except (NotFound, InvalidIdentifier):
        logger.info("Wipe requested for unknown subscriber")
        raise

    return render_message(
        request,
        i18n.T("public.dataRemovedTitle"),
        i18n.T("public.dataRemoved"),
    )


@router.get("/subscription/{campaign_uuid}/{subscriber_uuid}", response_class=HTMLResponse)
async def subscription_page(
    request: Request,
    campaign_uuid: str,
    subscriber_uuid: str,
    db: AsyncSession = Depends(get_session),
    privacy: PrivacySettings = Depends(get_privacy),
) -> HTMLResponse:
    """
    Display the unsubscribe page linked from `UnsubscribeURL` in campaigns.

    **Pages:**
    - Valid campaign and subscriber: unsubscribe form with masked e-mail and
      the blocklist, export and wipe options the privacy settings allow
    - Unknown or malformed UUIDs: not-found page (same for both)
    """
    await identifier_service.get_campaign(db, campaign_uuid)
    subscriber = await identifier_service.get_subscriber(db, subscriber_uuid)

    return templates.TemplateResponse(
        request,
        "subscription.html",
        {
            "title": i18n.T("public.unsubscribeTitle"),
            "sub_uuid": subscriber_uuid,
            "masked_email": mask_email(subscriber.email),
            "allow_blocklist": privacy.allow_blocklist,
            "allow_export": privacy.allow_export,
            "allow_wipe": privacy.allow_wipe,
        },
    )


@router.post("/subscription/{campaign_uuid}/{subscriber_uuid}", response_class=HTMLResponse)
async def unsubscribe(
    request: Request,
    campaign_uuid: str,
    subscriber_uuid: str,
    blocklist: str | None = Form(None),
    db: AsyncSession = Depends(get_session),
    privacy: PrivacySettings = Depends(get_privacy),
) -> HTMLResponse:
    """
    Unsubscribe from the lists the campaign was sent to.

    **Form Fields:**
    - `blocklist`: `true` to also blocklist the address and leave every list.
      Ignored when blocklisting is disabled.

    Repeating the request is harmless and shows the same page.
    """
    unsub = parse_unsubscribe_request(campaign_uuid, subscriber_uuid, blocklist)
    await consent_service.unsubscribe_by_campaign(
        db,
        privacy,
        unsub.subscriber_uuid,
        unsub.campaign_uuid,
        blocklist=unsub.blocklist,
    )

    return render_message(request, i18n.T("public.unsubbedTitle"), i18n.T("public.unsubbedInfo"))
