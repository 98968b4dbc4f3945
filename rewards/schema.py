import graphene
import logging

from config import errors
from . import claims

logger = logging.getLogger(__name__)


def _authorization(info):
    return info.context.META.get('HTTP_AUTHORIZATION', '')


class PendingStarsType(graphene.ObjectType):
    success = graphene.Boolean()
    error = graphene.String()
    error_code = graphene.String()
    retryable = graphene.Boolean()
    pending = graphene.Int()
    granted_total = graphene.Int()
    claimed_total = graphene.Int()


class GrantDevice(graphene.Mutation):
    """Move the caller's pending stars onto a device. Requires a session token."""

    class Arguments:
        device_id = graphene.String(required=True)

    success = graphene.Boolean()
    error = graphene.String()
    error_code = graphene.String()
    retryable = graphene.Boolean()
    stars = graphene.Int()
    granted = graphene.Boolean()
    amount_granted = graphene.Int()
    message = graphene.String()

    @classmethod
    def mutate(cls, root, info, device_id):
        try:
            result = claims.grant_device(_authorization(info), device_id)
        except errors.StarsError as e:
            return GrantDevice(success=False, granted=False, amount_granted=0, **e.as_dict())
        except Exception as e:
            logger.exception("Grant to device %s failed: %s", device_id, e)
            return GrantDevice(success=False, granted=False, amount_granted=0, error="Grant failed")
        return GrantDevice(success=True, **result)


class Query(graphene.ObjectType):
    check_pending = graphene.Field(PendingStarsType)

    def resolve_check_pending(self, info):
        try:
            result = claims.check_pending(_authorization(info))
        except errors.StarsError as e:
            logger.info("checkPending rejected: %s", e.code)
            return PendingStarsType(success=False, **e.as_dict())
        except Exception as e:
            logger.exception("checkPending failed: %s", e)
            return PendingStarsType(success=False, error="Could not load pending stars")
        return PendingStarsType(success=True, **result)


class Mutation(graphene.ObjectType):
    grant_device = GrantDevice.Field()
