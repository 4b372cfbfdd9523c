from pathlib import Path

import proxy_deploy

#
# Filesystem
#

DEPLOYMENT_DIR = Path(proxy_deploy.__file__).parent
DEPLOYMENT_PARAMS_DIR = DEPLOYMENT_DIR / "deployment_params"
ARTIFACTS_DIR = DEPLOYMENT_DIR / "artifacts"

#
# Proxies
#

OZ_DEPENDENCY_NAME = "openzeppelin"
OZ_DEPENDENCY_VERSION = "5.0.0"
PROXY_CONTRACT_TYPE = "TransparentUpgradeableProxy"
PROXY_ADMIN_CONTRACT_TYPE = "ProxyAdmin"

# EIP1967 Admin slot - https://eips.ethereum.org/EIPS/eip-1967#admin-address
EIP1967_ADMIN_SLOT = 0xB53127684A568B3173AE13B9F8A6016E243E63B6E8EE1178D6A717850B5D6103

DEFAULT_INITIALIZER = "initialize"
