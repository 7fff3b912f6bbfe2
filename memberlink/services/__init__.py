"""Service layer exports."""

from .batch_dispatcher import BatchDispatcher, DispatchResult, MissingAccessTokenError
from .credential_refresher import CredentialRefresher, RefreshReport
from .directory_commands import COMMAND_DEFINITIONS, CommandOutcome, DirectoryCommandService
from .directory_config import DirectoryConfigStore
from .directory_upload import DirectoryUploadService, InvalidUploadError, UploadRejectedError
from .identity_store import IdentityStore, group_by_origin
from .interaction_signature import InteractionSignatureError, InteractionVerifier
from .pagination import PaginationTokenCodec
from .refresh_scheduler import RefreshScheduler
from .verification import VerificationError, VerificationService

__all__ = [
    "BatchDispatcher",
    "COMMAND_DEFINITIONS",
    "CommandOutcome",
    "CredentialRefresher",
    "DirectoryCommandService",
    "DirectoryConfigStore",
    "DirectoryUploadService",
    "DispatchResult",
    "IdentityStore",
    "InteractionSignatureError",
    "InteractionVerifier",
    "InvalidUploadError",
    "MissingAccessTokenError",
    "PaginationTokenCodec",
    "RefreshReport",
    "RefreshScheduler",
    "UploadRejectedError",
    "VerificationError",
    "VerificationService",
    "group_by_origin",
]
