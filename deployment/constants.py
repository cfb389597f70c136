from pathlib import Path

import deployment

#
# Filesystem
#

DEPLOYMENT_DIR = Path(deployment.__file__).parent
PROJECT_ROOT = DEPLOYMENT_DIR.parent
CONSTRUCTOR_PARAMS_DIR = DEPLOYMENT_DIR / "constructor_params"
REGISTRY_DIR = DEPLOYMENT_DIR / "registries"
NETWORKS_FILEPATH = DEPLOYMENT_DIR / "networks.yml"
PARAMS_FILEPATH = CONSTRUCTOR_PARAMS_DIR / "iluminary.yml"

# hardhat compiler output: artifacts/contracts/<File>.sol/<Name>.json
BUILD_DIR = PROJECT_ROOT / "artifacts"

#
# Networks
#

LOCAL = "local"
TBSC = "tbsc"
BNB = "bnb"
SEPOLIA = "sepolia"

SUPPORTED_NETWORKS = [LOCAL, TBSC, BNB, SEPOLIA]

# seconds to wait for a contract creation to be mined
DEFAULT_CONFIRMATION_TIMEOUT = 300
POLL_LATENCY = 2

#
# Contracts
#

ILMT_VESTING = "ILMTVesting"
ILUMINARY_TOKEN = "IluminaryToken"
MOCK_TOKEN = "MockToken"

#
# Exit status
#

EXIT_SUCCESS = 0
EXIT_INTERRUPTED = 130
