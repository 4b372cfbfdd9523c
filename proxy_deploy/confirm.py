import sys
from typing import Any, List

from ape.utils import ZERO_ADDRESS


def _abort() -> None:
    print("Aborting deployment!")
    sys.exit(-1)


def _confirm_deployment(contract_name: str) -> None:
    """Asks the user to confirm the deployment of a single contract."""
    answer = input(f"Deploy {contract_name} Y/N? ")
    if answer.lower().strip() == "n":
        _abort()


def _continue() -> None:
    """Asks the user to continue."""
    answer = input("Continue Y/N? ")
    if answer.lower().strip() == "n":
        _abort()


def _confirm_zero_address() -> None:
    answer = input("Zero Address detected for initialization parameter; Continue? Y/N? ")
    if answer.lower().strip() == "n":
        _abort()


def _confirm_initialization(contract_name: str, method: str, args: List[Any]) -> None:
    """Asks the user to confirm the one-time initializer call of a proxied contract."""
    if len(args) == 0:
        print(f"\n(i) No arguments for {contract_name}.{method}")
        _confirm_deployment(f"proxy for {contract_name}")
        return

    print(f"\nArguments for {contract_name}.{method}")
    contains_zero_address = False
    for position, resolved_value in enumerate(args):
        print(f"\t[{position}]={resolved_value}")
        if not contains_zero_address:
            contains_zero_address = resolved_value == ZERO_ADDRESS
    _confirm_deployment(f"proxy for {contract_name}")
    if contains_zero_address:
        _confirm_zero_address()
