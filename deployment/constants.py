from collections import OrderedDict
from pathlib import Path

import deployment

#
# Filesystem
#

DEPLOYMENT_DIR = Path(deployment.__file__).parent
CONSTRUCTOR_PARAMS_DIR = DEPLOYMENT_DIR / "constructor_params"
ARTIFACTS_DIR = DEPLOYMENT_DIR / "artifacts"

#
# Plans
#

TOKEN = "token"
TOKEN_PEG = "token-peg"
BRIDGE = "bridge"

SUPPORTED_PLANS = [TOKEN, TOKEN_PEG, BRIDGE]

#
# Networks
#

# any ':'-separated segment of a network choice matching one of these selects the main class
MAIN_NETWORK_NAMES = ["mainnet", "main"]

MAIN_PREFIX = "MAIN_"
TEST_PREFIX = "TEST_"

#
# Configuration fields
#

ADDRESS_SUFFIX = "_ADDRESS"
KEY_SUFFIX = "_KEY"

# field name -> is a signing key (otherwise an address); order is the resolution order
CONFIG_FIELDS = OrderedDict(
    [
        ("deployer_key", True),
        ("manager", False),
        ("roles_manager", False),
        ("roles_manager_key", True),
        ("token_contract_manager", False),
        ("token_recovery_manager", False),
        ("multisig", False),
        ("peg_manager", False),
        ("peg", False),
        ("bridge", False),
    ]
)

#
# Contracts
#

ZERO_ADDRESS = "0x" + "0" * 40

# special plan variable resolving to the deployer address
DEPLOYER_VARIABLE = "deployer"

VERIFY_COMMAND = "verify"
