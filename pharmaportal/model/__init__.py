from pharmaportal.model.base import MAX_ID, BaseModel, ImmutableBase
from pharmaportal.model.account import Account
from pharmaportal.model.blob import Blob
from pharmaportal.model.profile import Profile, DOC_KEYS, DOC_COLUMNS

__all__ = ["MAX_ID", "BaseModel", "ImmutableBase", "Account", "Blob", "Profile", "DOC_KEYS", "DOC_COLUMNS"]
