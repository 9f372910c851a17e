"""Minimal ABIs for the payment token and the mint contract."""

from __future__ import annotations

# keccak256("Transfer(address,address,uint256)")
TRANSFER_TOPIC = "0xddf252ad1be2c89b69c2b068fc378daa952ba7f163c4a11628f55a4df523b3ef"

NFT_ABI = [
    {
        "inputs": [
            {"name": "payer", "type": "address"},
            {"name": "quantity", "type": "uint256"},
        ],
        "name": "mintAfterPayment",
        "outputs": [],
        "stateMutability": "nonpayable",
        "type": "function",
    },
    {
        "inputs": [],
        "name": "owner",
        "outputs": [{"name": "", "type": "address"}],
        "stateMutability": "view",
        "type": "function",
    },
]
