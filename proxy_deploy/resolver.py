from typing import Mapping, Optional

from eth_typing import ChecksumAddress

from proxy_deploy.errors import UnresolvedDependency
from proxy_deploy.records import RecordStore


class AddressResolver:
    """
    Resolves logical dependency names to addresses.

    Resolution order, first hit wins:
      1. a previously deployed instance in the record store
      2. the network's static default address table
    Resolution only reads local state, so repeated calls return the same
    address for as long as the record store is unchanged.
    """

    def __init__(self, records: RecordStore, defaults: Mapping[str, ChecksumAddress]):
        self.records = records
        self.defaults = dict(defaults)

    def find_deployed(self, name: str) -> Optional[ChecksumAddress]:
        """Returns the deployed instance address only, ignoring defaults."""
        return self.records.deployed_address(name)

    def resolve(self, name: str) -> ChecksumAddress:
        address = self.find_deployed(name)
        if address is not None:
            return address
        address = self.defaults.get(name)
        if address is not None:
            return address
        raise UnresolvedDependency(name)
