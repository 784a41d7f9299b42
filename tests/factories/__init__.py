"""
Factories FactoryBoy pour les tests.

Usage:
    from tests.factories import ChartAccountFactory

    cash = ChartAccountFactory.create(db_session=db_session, tenant_id=1, code="1111")
"""
from tests.factories.account import ChartAccountFactory, ChartAccountTemplateFactory
from tests.factories.journal import JournalEntryFactory, JournalLineFactory
from tests.factories.user_role import UserRoleFactory

__all__ = [
    "ChartAccountFactory",
    "ChartAccountTemplateFactory",
    "JournalEntryFactory",
    "JournalLineFactory",
    "UserRoleFactory",
]
