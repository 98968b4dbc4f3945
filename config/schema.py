from users import schema as users_schema
from telegram_verification import schema as telegram_verification_schema
from devices import schema as devices_schema
from rewards import schema as rewards_schema
import graphene
import logging

logger = logging.getLogger(__name__)

class Query(users_schema.Query, rewards_schema.Query, graphene.ObjectType):
	pass

class Mutation(
	users_schema.Mutation,
	telegram_verification_schema.Mutation,
	devices_schema.Mutation,
	rewards_schema.Mutation,
	graphene.ObjectType
):
	pass

# Register all types
types = [
	users_schema.IdentityType,
	rewards_schema.PendingStarsType,
]

schema = graphene.Schema(
	query=Query,
	mutation=Mutation,
	types=types
)

__all__ = ['schema']
