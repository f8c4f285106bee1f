"""Asset classification: which symbols are crypto ids and which are fiat codes."""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum


class AssetKind(str, Enum):
    FIAT = "fiat"
    CRYPTO = "crypto"


@dataclass(frozen=True)
class CryptoDef:
    asset_id: str
    ticker: str
    label: str


PIVOT_CURRENCY = "USD"

# CoinGecko ids, the canonical crypto identifiers
CRYPTO_DEFS: dict[str, CryptoDef] = {
    d.asset_id: d
    for d in (
        CryptoDef("bitcoin", "BTC", "Bitcoin"),
        CryptoDef("ethereum", "ETH", "Ethereum"),
        CryptoDef("cardano", "ADA", "Cardano"),
        CryptoDef("solana", "SOL", "Solana"),
        CryptoDef("binancecoin", "BNB", "Binance Coin"),
        CryptoDef("ripple", "XRP", "Ripple"),
        CryptoDef("polkadot", "DOT", "Polkadot"),
        CryptoDef("dogecoin", "DOGE", "Dogecoin"),
        CryptoDef("avalanche-2", "AVAX", "Avalanche"),
        CryptoDef("polygon", "MATIC", "Polygon"),
        CryptoDef("chainlink", "LINK", "Chainlink"),
        CryptoDef("uniswap", "UNI", "Uniswap"),
        CryptoDef("litecoin", "LTC", "Litecoin"),
        CryptoDef("bitcoin-cash", "BCH", "Bitcoin Cash"),
        CryptoDef("stellar", "XLM", "Stellar"),
        CryptoDef("vechain", "VET", "VeChain"),
        CryptoDef("filecoin", "FIL", "Filecoin"),
        CryptoDef("cosmos", "ATOM", "Cosmos"),
        CryptoDef("monero", "XMR", "Monero"),
        CryptoDef("algorand", "ALGO", "Algorand"),
        CryptoDef("tezos", "XTZ", "Tezos"),
        CryptoDef("aave", "AAVE", "Aave"),
        CryptoDef("compound", "COMP", "Compound"),
        CryptoDef("sushi", "SUSHI", "SushiSwap"),
        CryptoDef("pancakeswap-token", "CAKE", "PancakeSwap"),
        CryptoDef("curve-dao-token", "CRV", "Curve DAO"),
        CryptoDef("yearn-finance", "YFI", "Yearn Finance"),
        CryptoDef("synthetix-network-token", "SNX", "Synthetix"),
        CryptoDef("0x", "ZRX", "0x Protocol"),
        CryptoDef("balancer", "BAL", "Balancer"),
        CryptoDef("1inch", "1INCH", "1inch"),
        CryptoDef("dash", "DASH", "Dash"),
        CryptoDef("zcash", "ZEC", "Zcash"),
        CryptoDef("nem", "XEM", "NEM"),
        CryptoDef("iota", "MIOTA", "IOTA"),
        CryptoDef("neo", "NEO", "Neo"),
        CryptoDef("qtum", "QTUM", "Qtum"),
        CryptoDef("waves", "WAVES", "Waves"),
        CryptoDef("nano", "XNO", "Nano"),
        CryptoDef("icon", "ICX", "ICON"),
        CryptoDef("ontology", "ONT", "Ontology"),
        CryptoDef("zilliqa", "ZIL", "Zilliqa"),
        CryptoDef("harmony", "ONE", "Harmony"),
        CryptoDef("elrond-erd-2", "EGLD", "Elrond"),
        CryptoDef("near", "NEAR", "NEAR Protocol"),
        CryptoDef("fantom", "FTM", "Fantom"),
        CryptoDef("the-graph", "GRT", "The Graph"),
        CryptoDef("decentraland", "MANA", "Decentraland"),
        CryptoDef("sandbox", "SAND", "The Sandbox"),
        CryptoDef("enjincoin", "ENJ", "Enjin Coin"),
        CryptoDef("axie-infinity", "AXS", "Axie Infinity"),
        CryptoDef("gala", "GALA", "Gala"),
        CryptoDef("chiliz", "CHZ", "Chiliz"),
        CryptoDef("flow", "FLOW", "Flow"),
        CryptoDef("internet-computer", "ICP", "Internet Computer"),
        CryptoDef("theta-token", "THETA", "Theta Network"),
        CryptoDef("vega-protocol", "VEGA", "Vega Protocol"),
        CryptoDef("celo", "CELO", "Celo"),
        CryptoDef("kusama", "KSM", "Kusama"),
        CryptoDef("eos", "EOS", "EOS"),
        CryptoDef("tron", "TRX", "TRON"),
        CryptoDef("bitcoin-sv", "BSV", "Bitcoin SV"),
    )
}

# Tickers users type instead of the id ("btc" -> "bitcoin")
CRYPTO_ALIASES: dict[str, str] = {d.ticker.lower(): d.asset_id for d in CRYPTO_DEFS.values()}

FIAT_CODES: frozenset[str] = frozenset(
    {
        "USD", "EUR", "GBP", "JPY", "CNY", "CAD", "AUD", "CHF", "SEK", "NOK",
        "DKK", "PLN", "CZK", "HUF", "RON", "BGN", "HRK", "RUB", "TRY", "BRL",
        "MXN", "ARS", "CLP", "COP", "PEN", "UYU", "VEF", "NGN", "ZAR", "EGP",
        "MAD", "TND", "DZD", "LYD", "KES", "UGX", "TZS", "ETB", "GHS", "XOF",
        "XAF", "INR", "PKR", "BDT", "LKR", "NPR", "THB", "VND", "IDR", "MYR",
        "SGD", "HKD", "TWD", "KRW", "PHP", "ILS", "AED", "SAR", "QAR", "KWD",
        "BHD", "OMR", "JOD", "LBP", "IRR", "IQD", "AFN", "UZS", "KZT", "NZD",
        "ISK", "UAH", "GEL", "AMD", "AZN", "BYN", "MDL", "RSD", "MKD", "ALL",
    }
)

_FIAT_RE = re.compile(r"^[A-Za-z]{3}$")


def normalize_crypto(symbol: str) -> str | None:
    key = (symbol or "").strip().lower()
    if not key:
        return None
    key = CRYPTO_ALIASES.get(key, key)
    return key if key in CRYPTO_DEFS else None


def classify(symbol: str) -> AssetKind:
    """Return the asset kind of ``symbol``.

    Anything not in the crypto table is treated as fiat; whether the fiat code
    actually exists is the upstream source's problem.
    """
    if normalize_crypto(symbol):
        return AssetKind.CRYPTO
    return AssetKind.FIAT


def normalize_symbol(symbol: str) -> str:
    """Canonical form: crypto ids lower case, fiat codes upper case."""
    crypto = normalize_crypto(symbol)
    if crypto:
        return crypto
    return (symbol or "").strip().upper()


def is_known_symbol(symbol: str) -> bool:
    if normalize_crypto(symbol):
        return True
    code = (symbol or "").strip()
    return bool(_FIAT_RE.match(code)) and code.upper() in FIAT_CODES


def display_symbol(symbol: str) -> str:
    """Short label for messages: ticker for crypto, code for fiat."""
    crypto = normalize_crypto(symbol)
    if crypto:
        return CRYPTO_DEFS[crypto].ticker
    return (symbol or "").strip().upper()
