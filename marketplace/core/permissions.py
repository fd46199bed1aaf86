"""Authorization rules for offer actions."""
from marketplace.core.exceptions import OfferForbiddenError
from marketplace.db.models.enums import UserPermission


def is_offer_admin(user) -> bool:
    return user is not None and user.has_permission(UserPermission.ADMIN_OFFERS)


def can_sell_limited(user) -> bool:
    """Sellers with full or limited selling rights may publish offers"""
    return user.has_permission(UserPermission.CAN_SELL) or user.has_permission(
        UserPermission.CAN_SELL_LIMITED
    )


def can_update_offer(user, offer) -> bool:
    if is_offer_admin(user):
        return True
    if offer.user_id == user.id:
        return True
    return user.business_id is not None and offer.business_id == user.business_id


def can_check_user_history(actor, target) -> bool:
    return actor.id == target.id or actor.has_permission(UserPermission.CHECK_USER_HISTORY)


def can_export_import_offers(user) -> bool:
    return is_offer_admin(user) or user.has_permission(UserPermission.EXPORT_IMPORT_OFFERS)


def can_see_owner(user) -> bool:
    return user is not None and (
        user.has_permission(UserPermission.SEE_OWNER_IN_OFFER)
        or user.has_permission(UserPermission.SEE_PRODUCT_WAREHOUSE)
    )


def authorize(allowed: bool, message: str = "This action is unauthorized.") -> None:
    """Raise OfferForbiddenError unless allowed"""
    if not allowed:
        raise OfferForbiddenError(message)
