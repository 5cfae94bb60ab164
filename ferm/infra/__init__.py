"""Infrastructure - Database, broker, mail, logging."""

from ferm.infra.broker import MessageBroker
from ferm.infra.database import Database, DatabaseSession
from ferm.infra.logging import get_logger, setup_logging
from ferm.infra.mailer import MailPayload, SmtpMailer

__all__ = [
    "Database",
    "DatabaseSession",
    "MessageBroker",
    "MailPayload",
    "SmtpMailer",
    "setup_logging",
    "get_logger",
]
