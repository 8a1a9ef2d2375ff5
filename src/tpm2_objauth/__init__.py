# SPDX-License-Identifier: BSD-2
from .types import *
from .constants import *
from .exceptions import *
from .rand import RandomSource, LocalRandom, TpmRandom, FixedRandom
from .attestation import (
    get_signing_hash_alg,
    validate_quote,
    validate_certify,
    validate_certify_creation,
    validate_get_time,
    validate_command_audit,
    validate_session_audit,
    validate_certify_nv,
)
from .utils import (
    DuplicationBlob,
    make_credential,
    activate_credential,
    credential_to_tools,
    tools_to_credential,
    wrap,
    unwrap,
)
from .tsskey import TSSKey
