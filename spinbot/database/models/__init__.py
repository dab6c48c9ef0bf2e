from .user import User
from .admin import Admin, AdminRole
from .ticket import TicketCounter
from .spin import SpinLog, SpinOutcome
from .wallet import Wallet, WalletTransaction, WalletTxKind
from .bonus import BonusState
from .flags import AccountFlag
from .logs import AdminActionLog, DenialAction, DenialLog

__all__ = [
    "User",
    "Admin",
    "AdminRole",
    "TicketCounter",
    "SpinLog",
    "SpinOutcome",
    "Wallet",
    "WalletTransaction",
    "WalletTxKind",
    "BonusState",
    "AccountFlag",
    "AdminActionLog",
    "DenialAction",
    "DenialLog",
]
