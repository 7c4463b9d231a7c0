"""The faucet's signing key."""

import logging
from pathlib import Path

from eth_account import Account
from eth_account.datastructures import SignedTransaction
from eth_account.signers.local import LocalAccount
from pydantic import SecretStr

logger = logging.getLogger(__name__)


class FaucetWallet:
    """Hot wallet that pays out faucet claims.

    Build it with :meth:`from_key`, :meth:`from_file` or :func:`load_wallet`;
    the raw key never leaves the wrapped ``LocalAccount``.
    """

    def __init__(self, account: LocalAccount):
        self._account = account

    @classmethod
    def from_key(cls, private_key: SecretStr) -> "FaucetWallet":
        """Wallet for a hex private key.

        Raises
        ------
        ValueError
            If the key is not 32 bytes of hex.
        """
        return cls(Account.from_key(private_key.get_secret_value().strip()))

    @classmethod
    def from_file(cls, path: str) -> "FaucetWallet":
        """Wallet for a file holding a hex private key, such as a mounted secret.

        Raises
        ------
        FileNotFoundError
            If ``path`` does not exist.
        ValueError
            If the file does not hold a valid key.
        """
        key_path = Path(path).expanduser()
        if not key_path.is_file():
            raise FileNotFoundError(f"Private key file not found: {path}")
        return cls(Account.from_key(key_path.read_text().strip()))

    @property
    def address(self) -> str:
        """Checksummed address of the signing account."""
        return self._account.address

    def sign_transaction(self, tx: dict) -> SignedTransaction:
        return self._account.sign_transaction(tx)


def load_wallet(
    private_key: SecretStr | None,
    private_key_file: str | None,
) -> FaucetWallet:
    """Build the faucet wallet from configuration.

    The inline key wins when both sources are set.

    Raises
    ------
    ValueError
        If neither source is set, or the key is malformed.
    FileNotFoundError
        If only a key file is set and it does not exist.
    """
    if private_key is not None:
        if private_key_file:
            logger.warning(
                "Both FAUCET_WALLET_PRIVATE_KEY and FAUCET_WALLET_PRIVATE_KEY_FILE set; "
                "using FAUCET_WALLET_PRIVATE_KEY"
            )
        return FaucetWallet.from_key(private_key)
    if private_key_file:
        return FaucetWallet.from_file(private_key_file)
    raise ValueError("Either private_key or private_key_file must be provided")
