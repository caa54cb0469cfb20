"""
Configuration for the Table Latency Benchmarking tool.

Connection strings are secrets and are never stored in this file. They are
read from the environment, which is populated from a `.env` file if one is
present (see `.env.template`).

INSTRUCTIONS:
1. Copy the template: cp .env.template .env
2. Fill in the connection string(s) for the target(s) you want to benchmark
3. DO NOT commit .env (it contains secrets)
"""

import os
import logging
from dataclasses import dataclass
from typing import Dict, Any, Optional, Tuple

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

# Load environment variables
load_dotenv()

# =============================================================================
# Connection Targets
# =============================================================================


@dataclass(frozen=True)
class ConnectionTarget:
    """A named connection preset and the setting that holds its connection string"""
    name: str
    setting_key: str
    env_var: str
    description: str = ""


PREMIUM_TARGET = ConnectionTarget(
    name='Premium',
    setting_key='PremiumStorageConnectionString',
    env_var='PREMIUM_STORAGE_CONNECTION_STRING',
    description='Cosmos DB Table API endpoint',
)

STANDARD_TARGET = ConnectionTarget(
    name='Standard',
    setting_key='StandardStorageConnectionString',
    env_var='STANDARD_STORAGE_CONNECTION_STRING',
    description='Azure Storage Table service',
)

DEFAULT_TARGET = PREMIUM_TARGET

CONNECTION_TARGETS = {
    PREMIUM_TARGET.name: PREMIUM_TARGET,
    STANDARD_TARGET.name: STANDARD_TARGET,
}

# =============================================================================
# Benchmark Configuration
# =============================================================================

BENCHMARK_CONFIG = {
    # Calls per phase
    'num_iterations': 100,

    # Table created (if missing) and used for every phase
    'table_name': 'people',

    # Parallel calls within a phase (1 = strictly sequential)
    'workers': 1,

    # Domain of generated Email values
    'email_domain': 'contoso.com',
}

# =============================================================================
# Store Configuration
# =============================================================================

BACKEND_CONFIGS = {
    'azure_tables': {
        'enabled': True,
        'description': 'Azure Tables (Cosmos DB Table API or Azure Storage)',
    },
    'dynamodb': {
        'enabled': True,
        'description': 'AWS DynamoDB',
        'region': os.getenv('AWS_REGION') or 'us-east-1',
        'endpoint_url': os.getenv('DYNAMODB_ENDPOINT_URL') or None,
        'access_key_id': os.getenv('AWS_ACCESS_KEY_ID') or None,
        'secret_access_key': os.getenv('AWS_SECRET_ACCESS_KEY') or None,
        'table_prefix': os.getenv('DYNAMODB_TABLE_PREFIX', ''),
    },
    'memory': {
        'enabled': True,
        'description': 'In-process store (dry run, no network)',
    },
}

# =============================================================================
# Helper Functions
# =============================================================================


def resolve_target(name: Optional[str] = None) -> ConnectionTarget:
    """
    Pick the connection target for a command-line selector.

    Only the exact value "Standard" selects the Standard target; anything
    else, including no value, falls back to the default target.
    """
    if name == STANDARD_TARGET.name:
        return STANDARD_TARGET
    if name is not None and name != DEFAULT_TARGET.name:
        logger.info("Unknown target '%s', using %s", name, DEFAULT_TARGET.name)
    return DEFAULT_TARGET


def parse_iterations(value: Optional[str] = None) -> int:
    """
    Parse the iteration count argument.

    Returns:
        BENCHMARK_CONFIG['num_iterations'] when value is None

    Raises:
        ValueError: If the value is not a positive integer
    """
    if value is None:
        return BENCHMARK_CONFIG['num_iterations']
    iterations = int(value)
    if iterations < 1:
        raise ValueError(f"iteration count must be a positive integer, got {value!r}")
    return iterations


def get_connection_string(target: ConnectionTarget) -> str:
    """
    Look up the connection string for a target.

    Raises:
        ValueError: If the setting is not configured
    """
    value = os.getenv(target.env_var)
    if not value:
        raise ValueError(
            f"{target.setting_key} is not configured; set {target.env_var} "
            f"in the environment or in .env"
        )
    return value


def get_backend_config(backend_name: str, target: Optional[ConnectionTarget] = None) -> Dict[str, Any]:
    """
    Build the config dict passed to a store.

    The Azure Tables config gets the target's connection string, which is
    resolved here so a missing setting fails before any work starts.
    """
    if backend_name not in BACKEND_CONFIGS:
        available = ', '.join(BACKEND_CONFIGS)
        raise ValueError(f"Backend '{backend_name}' not found. Available backends: {available}")

    cfg = dict(BACKEND_CONFIGS[backend_name])
    if backend_name == 'azure_tables':
        target = target or DEFAULT_TARGET
        cfg['target'] = target.name
        cfg['connection_string'] = get_connection_string(target)
    return cfg


def validate_backend_config(backend_name: str, target: Optional[ConnectionTarget] = None) -> Tuple[bool, str]:
    """Check that a backend can be configured without raising."""
    if backend_name not in BACKEND_CONFIGS:
        return False, f"Unknown backend '{backend_name}'"
    if not BACKEND_CONFIGS[backend_name].get('enabled', False):
        return False, "Backend is disabled"
    if backend_name == 'azure_tables':
        target = target or DEFAULT_TARGET
        if not os.getenv(target.env_var):
            return False, f"{target.env_var} not set"
    return True, "OK"


def _mask(value: Optional[str]) -> str:
    if not value:
        return '(not set)'
    return '***' + value[-4:]


def print_config():
    """Print current configuration (masks sensitive values)"""
    print("=" * 80)
    print("CURRENT CONFIGURATION")
    print("=" * 80)

    print("\n🔧 Connection targets:")
    for target in CONNECTION_TARGETS.values():
        default = " (default)" if target is DEFAULT_TARGET else ""
        print(f"   {target.name}{default}: {target.description}")
        print(f"      {target.env_var}: {_mask(os.getenv(target.env_var))}")

    dynamodb = BACKEND_CONFIGS['dynamodb']
    print("\n☁️  DynamoDB:")
    print(f"   Region: {dynamodb['region']}")
    print(f"   Endpoint: {dynamodb['endpoint_url'] or '(AWS default)'}")
    print(f"   Access key: {_mask(dynamodb['access_key_id'])}")

    print("\n📊 Benchmarks:")
    print(f"   Iterations per phase: {BENCHMARK_CONFIG['num_iterations']}")
    print(f"   Table: {BENCHMARK_CONFIG['table_name']}")
    print(f"   Workers: {BENCHMARK_CONFIG['workers']}")

    print("\n" + "=" * 80)


if __name__ == '__main__':
    print_config()
