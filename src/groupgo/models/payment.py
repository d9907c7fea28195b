"""Payment backend payloads. Nothing here is persisted."""

from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _PaymentModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")


class PaymentMethodSummary(_PaymentModel):
    id: str
    brand: str | None = None
    last4: str | None = None
    # The backend has shipped both spellings.
    exp_month: int | None = Field(default=None, validation_alias=AliasChoices("exp_month", "expMonth"))
    exp_year: int | None = Field(default=None, validation_alias=AliasChoices("exp_year", "expYear"))
    is_default: bool = False


class PaymentMethodList(_PaymentModel):
    customer_id: str | None = None
    payment_methods: list[PaymentMethodSummary] = []
    default_payment_method: str | None = None


class SetupIntentResponse(_PaymentModel):
    customer_id: str
    setup_intent_client_secret: str
    ephemeral_key: str
    publishable_key: str
