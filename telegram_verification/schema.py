import graphene
import logging

from config import errors
from .otp import request_otp

logger = logging.getLogger(__name__)


class RequestOtp(graphene.Mutation):
    class Arguments:
        phone = graphene.String(required=True)

    success = graphene.Boolean()
    error = graphene.String()
    error_code = graphene.String()
    retryable = graphene.Boolean()
    expires_in_seconds = graphene.Int()

    @classmethod
    def mutate(cls, root, info, phone):
        try:
            result = request_otp(phone)
        except errors.StarsError as e:
            return RequestOtp(success=False, **e.as_dict())
        except Exception as e:
            logger.exception("Failed to issue OTP: %s", e)
            return RequestOtp(success=False, error="Could not send the verification code", retryable=True)
        return RequestOtp(success=True, expires_in_seconds=result['expires_in_seconds'])


class Mutation(graphene.ObjectType):
    request_otp = RequestOtp.Field()
