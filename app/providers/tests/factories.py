"""
Factory Boy factories for provider models.

Usage:
    from providers.tests.factories import GovernorateFactory, ProviderFactory

    cairo = GovernorateFactory(name_en="Cairo")
    provider = ProviderFactory(governorate=cairo)
"""

import factory

from providers.models import Governorate, Provider, ProviderStatus


class GovernorateFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = Governorate

    name_en = factory.Sequence(lambda n: f"Governorate {n}")
    name_ar = factory.Sequence(lambda n: f"محافظة {n}")
    is_active = True


class ProviderFactory(factory.django.DjangoModelFactory):
    """
    Factory for Provider model.

    Creates the operator account and governorate automatically.
    """

    class Meta:
        model = Provider

    owner = factory.SubFactory("authentication.tests.factories.OperatorFactory")
    governorate = factory.SubFactory(GovernorateFactory)
    name_ar = factory.Sequence(lambda n: f"مطبخ {n}")
    name_en = factory.Sequence(lambda n: f"Kitchen {n}")
    status = ProviderStatus.OPEN
