# SPDX-License-Identifier: BSD-2
"""Loggers of the object authentication layer.

Every subsystem logs to its own logger under the ``TPM2.`` namespace so
applications can turn them up or down independently, for example::

    logging.getLogger("TPM2.attest").setLevel(logging.DEBUG)
"""
import logging

from .config import LOG_LEVEL

objauth_modules = [
    "naming",
    "attest",
    "envelope",
    "marshal",
    "crypto",
]

objauth_loggers = {
    module: logging.getLogger(f"TPM2.{module}") for module in objauth_modules
}

_root_logger = logging.getLogger("TPM2")
if LOG_LEVEL is not None:
    _root_logger.setLevel(LOG_LEVEL)
