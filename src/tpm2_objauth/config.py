# SPDX-License-Identifier: BSD-2
import json
import os
import pkgutil

CONFIG = json.loads(pkgutil.get_data(__package__, "config.json").decode())

# name algorithm given to public areas built from PEM keys
DEFAULT_NAME_ALG = CONFIG.get("default_name_alg", "sha256")

LOG_LEVEL = os.environ.get("TPM2_OBJAUTH_LOG_LEVEL", CONFIG.get("log_level"))
if isinstance(LOG_LEVEL, str):
    LOG_LEVEL = LOG_LEVEL.upper()
