"""Developer assistant endpoints backed by the generative-AI service.

Each operation is a single pass-through completion with a fixed prompt.
"""

import re
from dataclasses import dataclass

from fitofaucet.ai.client import ChatTurn, TextGenerator

TX_HASH_PATTERN = re.compile(r"^0x[a-fA-F0-9]{64}$")
MIN_CONTRACT_LENGTH = 20

EXPLAIN_TX_TEMPLATE = """\
As a blockchain expert, explain the following transaction hash in simple, easy-to-understand terms.
You don't have real-time access to the blockchain, so base your explanation on the typical \
structure and purpose of a transaction.

Explain what this hash represents and break down the common components of a transaction it \
might point to, such as:
- Sender (From)
- Receiver (To)
- Value / Amount
- Gas Fees / Transaction Cost
- Contract Interaction (if applicable)

Keep the language clear and accessible for someone new to blockchain. Use markdown for formatting.

Transaction Hash: {tx_hash}"""

AUDIT_INSTRUCTION = """\
You are an expert smart contract security auditor and code reviewer specializing in Solidity.
Your task is to analyze the provided smart contract code.

Provide your analysis in three sections using markdown:

### 1. Overall Summary
Briefly describe the contract's main purpose and functionality.

### 2. Security Analysis
Identify potential vulnerabilities (e.g., reentrancy, integer overflow/underflow, access control \
issues). For each finding, explain the risk and suggest a mitigation. If no major issues are \
found, state that.

### 3. Code Quality & Optimizations
Suggest improvements for gas efficiency, code clarity, and adherence to best practices."""

CHAT_INSTRUCTION = """\
You are a helpful and friendly AI assistant for Fitochain, a fictional blockchain platform.
Your primary goal is to assist developers by answering their questions about building on Fitochain.
Assume Fitochain is similar to Ethereum, using Solidity for smart contracts and a compatible \
JSON-RPC API.
Answer questions clearly and provide code examples in markdown when helpful.
If you don't know an answer, say so honestly. Do not make up information about \
Fitochain-specific tools or libraries that don't exist.
Stick to general blockchain development advice in the context of a Fitochain query."""

# Client history uses Gemini role names
_ROLE_MAP = {"user": "user", "model": "assistant", "assistant": "assistant"}


class InvalidAssistantRequest(ValueError):
    """Raised when an assistant request fails input validation."""


@dataclass
class ChatMessage:
    """One entry of client-supplied chat history."""

    role: str
    text: str


def parse_history(raw: object) -> list[ChatMessage]:
    """Parse ``[{role, parts: [{text}]}]`` history from a request body.

    Raises
    ------
    InvalidAssistantRequest
        If the history is not a list of well-formed entries.
    """
    if not isinstance(raw, list):
        raise InvalidAssistantRequest("A valid history array is required.")

    messages = []
    for entry in raw:
        if not isinstance(entry, dict) or entry.get("role") not in _ROLE_MAP:
            raise InvalidAssistantRequest("A valid history array is required.")
        parts = entry.get("parts")
        if isinstance(parts, list):
            text = "".join(
                part.get("text", "") for part in parts if isinstance(part, dict)
            )
        else:
            text = str(entry.get("text", ""))
        messages.append(ChatMessage(role=entry["role"], text=text))
    return messages


class AssistantService:
    """Transaction explainer, contract auditor and Q&A bot.

    Parameters
    ----------
    generator : TextGenerator
        AI text-completion client.
    """

    def __init__(self, generator: TextGenerator):
        self._generator = generator

    async def explain_transaction(self, tx_hash: object) -> str:
        if not isinstance(tx_hash, str) or not TX_HASH_PATTERN.match(tx_hash):
            raise InvalidAssistantRequest("Invalid transaction hash provided")
        return await self._generator.generate(
            EXPLAIN_TX_TEMPLATE.format(tx_hash=tx_hash),
            operation="explain_tx",
        )

    async def analyze_contract(self, code: object) -> str:
        if not isinstance(code, str) or len(code) < MIN_CONTRACT_LENGTH:
            raise InvalidAssistantRequest("Valid smart contract code must be provided.")
        return await self._generator.generate(
            code,
            system_instruction=AUDIT_INSTRUCTION,
            operation="analyze_contract",
        )

    async def chat(self, message: object, history: list[ChatMessage]) -> str:
        if not isinstance(message, str) or not message.strip():
            raise InvalidAssistantRequest("A valid message is required.")
        turns = [ChatTurn(role=_ROLE_MAP[m.role], text=m.text) for m in history if m.text]
        return await self._generator.generate(
            message,
            system_instruction=CHAT_INSTRUCTION,
            history=turns,
            operation="chat",
        )
