import site
import sys
from setuptools import setup, find_packages

# workaround bug https://github.com/pypa/pip/issues/7953
site.ENABLE_USER_SITE = "--user" in sys.argv[1:]

setup(
    name="tpm2-objauth",
    version="0.1.0",
    description="TPM 2.0 object naming, attestation verification and credential envelopes in Python",
    license="BSD-2-Clause",
    python_requires=">=3.8",
    package_dir={"": "src"},
    packages=find_packages(where="src"),
    package_data={"tpm2_objauth": ["config.json"]},
    install_requires=["cryptography>=3.0"],
    extras_require={"dev": ["pytest", "pytest-cov"]},
)
