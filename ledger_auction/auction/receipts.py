"""Human-readable rendering of transaction receipts."""

from __future__ import annotations

from .models import Receipt

_SHORT_ESCAPES = {
    0x07: "\\a",
    0x08: "\\b",
    0x0C: "\\f",
    0x0A: "\\n",
    0x0D: "\\r",
    0x09: "\\t",
    0x0B: "\\v",
    0x5C: "\\\\",
    0x27: "\\'",
    0x22: '\\"',
}


def escape_bytes(data: bytes) -> str:
    """Escape bytes the way protobuf text format (and C string literals) do.

    Printable ASCII passes through; everything else without a short escape
    becomes a three-digit octal sequence.
    """
    parts: list[str] = []
    for byte in data:
        short = _SHORT_ESCAPES.get(byte)
        if short is not None:
            parts.append(short)
        elif 0x20 <= byte <= 0x7E:
            parts.append(chr(byte))
        else:
            parts.append(f"\\{byte:03o}")
    return "".join(parts)


def _contract_num(contract_id: str) -> int:
    try:
        return int(contract_id.rsplit(".", 1)[-1])
    except ValueError:
        return 0


def format_receipt(receipt: Receipt) -> str:
    lines = [
        f"receipt status: {receipt.status}",
        f"consensusTimestamp: {receipt.consensus_timestamp}",
        f"transactionID: {receipt.transaction_id}",
        f"transactionFee: {receipt.transaction_fee}",
    ]
    result = receipt.contract_result
    if result is not None:
        lines.append("contractCallResult {")
        lines.append(f"\tgasUsed: {result.gas_used}")
        if _contract_num(result.contract_id) != 0:
            lines.append(f"\tcontractId: {result.contract_id}")
        if result.error_message is not None:
            lines.append(f"\terrorMessage: {result.error_message}")
            lines.append(f"\tcontractCallResult: {escape_bytes(result.result_bytes)}")
        for log in result.logs:
            lines.append("\tlogInfo {")
            lines.append(f"\t\tcontractId: {log.contract_id}")
            lines.append(f"\t\tbloom: {escape_bytes(log.bloom)}")
            lines.append(f"\t\tdata: {escape_bytes(log.data)}")
            if log.topics:
                lines.append(f"\t\ttopic: {escape_bytes(log.topics[0])}")
            lines.append("\t}")
        lines.append("}")
    return "\n".join(lines) + "\n"
