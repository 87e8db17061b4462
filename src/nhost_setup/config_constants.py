#!/usr/bin/env python3
"""
Filename constants for nhost-setup.

All modules import these names instead of hardcoding paths. Paths are
relative to the work directory (the directory holding the compose file).
"""

# ============================================================================
# Settings
# ============================================================================

# Optional operator settings (project directory)
SETTINGS_FILE = 'nhost-setup.toml'
LOG_LEVEL_ENV = 'NHOST_SETUP_LOG_LEVEL'

# ============================================================================
# Rendered artifacts (work directory)
# ============================================================================

ENV_FILE = '.env'
COMPOSE_FILE = 'docker-compose.prod.yaml'
CREDENTIALS_FILE = 'nhost-config.txt'
STATE_FILE = '.nhost-setup.state.toml'

# Supporting directories
LETSENCRYPT_DIR = 'letsencrypt'
INITDB_DIR = 'initdb.d'
FUNCTIONS_DIR = 'functions'

INITDB_SCRIPT = '0001-create-schema.sql'
SAMPLE_FUNCTION = 'hello.js'

# ============================================================================
# Templates (package data under nhost_setup/templates)
# ============================================================================

CREDENTIALS_TEMPLATE = 'nhost-config.txt.j2'
INITDB_TEMPLATE = '0001-create-schema.sql.j2'
SAMPLE_FUNCTION_TEMPLATE = 'hello.js.j2'

# Permissions for the credential record (owner read/write only)
CREDENTIALS_MODE = 0o600
