import graphene
import logging

from config import errors
from . import quota

logger = logging.getLogger(__name__)


class InitDevice(graphene.Mutation):
    class Arguments:
        device_id = graphene.String(required=True)

    success = graphene.Boolean()
    error = graphene.String()
    error_code = graphene.String()
    retryable = graphene.Boolean()
    device_id = graphene.String()
    stars = graphene.Int()
    is_new = graphene.Boolean()

    @classmethod
    def mutate(cls, root, info, device_id):
        try:
            result = quota.init_device(device_id)
        except errors.StarsError as e:
            return InitDevice(success=False, **e.as_dict())
        except Exception as e:
            logger.exception("Init failed: %s", e)
            return InitDevice(success=False, error="Init failed")
        return InitDevice(success=True, **result)


class Scan(graphene.Mutation):
    class Arguments:
        device_id = graphene.String(required=True)
        target_id = graphene.String(required=True)

    success = graphene.Boolean()
    error = graphene.String()
    error_code = graphene.String()
    retryable = graphene.Boolean()
    score = graphene.Int()
    stars = graphene.Int()

    @classmethod
    def mutate(cls, root, info, device_id, target_id):
        try:
            result = quota.scan(device_id, target_id)
        except errors.ResourceExhausted as e:
            return Scan(success=False, stars=0, **e.as_dict())
        except errors.StarsError as e:
            return Scan(success=False, **e.as_dict())
        except Exception as e:
            logger.exception("Scan failed: %s", e)
            return Scan(success=False, error="Scan failed")
        return Scan(success=True, **result)


class Mutation(graphene.ObjectType):
    init_device = InitDevice.Field()
    scan = Scan.Field()
