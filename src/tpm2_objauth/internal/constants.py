# SPDX-License-Identifier: BSD-2
"""Labels used by the KDF and OAEP operations of the secure envelopes.

The OAEP labels carry their terminating NUL, the KDFa labels do not since
KBKDFHMAC appends the separator itself.
"""

IDENTITY_LABEL = b"IDENTITY\x00"
DUPLICATE_LABEL = b"DUPLICATE\x00"
SECRET_LABEL = b"SECRET\x00"

STORAGE_LABEL = b"STORAGE"
INTEGRITY_LABEL = b"INTEGRITY"

# size of the seeds and symmetric keys produced for AES-128 envelopes
AES128_KEY_BYTES = 16
