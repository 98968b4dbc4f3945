import graphene
import logging
from graphene_django import DjangoObjectType

from config import errors
from . import services
from .models import Identity

logger = logging.getLogger(__name__)


class IdentityType(DjangoObjectType):
    pending = graphene.Int()

    class Meta:
        model = Identity
        fields = ('username', 'phone', 'referral_code', 'referral_count', 'granted_total', 'claimed_total')

    def resolve_pending(self, info):
        return self.pending


class Register(graphene.Mutation):
    class Arguments:
        phone = graphene.String(required=True)
        username = graphene.String(required=True)
        password = graphene.String(required=True)
        otp = graphene.String(required=True)
        ref_code = graphene.String()

    success = graphene.Boolean()
    error = graphene.String()
    error_code = graphene.String()
    retryable = graphene.Boolean()
    phone = graphene.String()
    username = graphene.String()
    referral_code = graphene.String()

    @classmethod
    def mutate(cls, root, info, phone, username, password, otp, ref_code=None):
        try:
            result = services.register(phone, username, password, otp, ref_code=ref_code)
        except errors.StarsError as e:
            return Register(success=False, **e.as_dict())
        except Exception as e:
            logger.exception("Registration failed: %s", e)
            return Register(success=False, error="Registration failed")
        return Register(success=True, **result)


class Login(graphene.Mutation):
    class Arguments:
        username = graphene.String(required=True)
        password = graphene.String(required=True)

    success = graphene.Boolean()
    error = graphene.String()
    error_code = graphene.String()
    retryable = graphene.Boolean()
    token = graphene.String()
    phone = graphene.String()
    username = graphene.String()
    referral_code = graphene.String()
    granted_total = graphene.Int()
    bonus_granted = graphene.Boolean()

    @classmethod
    def mutate(cls, root, info, username, password):
        try:
            result = services.login(username, password)
        except errors.StarsError as e:
            return Login(success=False, **e.as_dict())
        except Exception as e:
            logger.exception("Login failed: %s", e)
            return Login(success=False, error="Login failed")
        return Login(success=True, **result)


class ResetPassword(graphene.Mutation):
    class Arguments:
        phone = graphene.String(required=True)
        new_password = graphene.String(required=True)
        otp = graphene.String(required=True)

    success = graphene.Boolean()
    error = graphene.String()
    error_code = graphene.String()
    retryable = graphene.Boolean()
    username = graphene.String()

    @classmethod
    def mutate(cls, root, info, phone, new_password, otp):
        try:
            result = services.reset_password(phone, new_password, otp)
        except errors.StarsError as e:
            return ResetPassword(success=False, **e.as_dict())
        except Exception as e:
            logger.exception("Password reset failed: %s", e)
            return ResetPassword(success=False, error="Password reset failed")
        return ResetPassword(success=True, **result)


class Query(graphene.ObjectType):
    me = graphene.Field(IdentityType)

    def resolve_me(self, info):
        try:
            return services.identity_for_token(info.context.META.get('HTTP_AUTHORIZATION', ''))
        except errors.StarsError:
            return None


class Mutation(graphene.ObjectType):
    register = Register.Field()
    login = Login.Field()
    reset_password = ResetPassword.Field()
