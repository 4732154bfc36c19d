from ..errors import ProviderUnavailable
from ..schemas import BlockRange, TransactionLog, WalletActivity
from ..utils.address import hex_to_int, pad_topic, topic_to_address
from ..utils.logs import get_logger
from .evm_rpc import EvmRpcClient

# keccak256("Transfer(address,address,uint256)"), compartido por ERC-20 y ERC-721
TRANSFER_TOPIC = "0xddf252ad1be2c89b69c2b068fc378daa952ba7f163c4a11628f55a4df523b3ef"

log = get_logger(__name__)


def parse_log(entry: dict) -> TransactionLog:
    topics = tuple(entry.get("topics") or ())
    data = entry.get("data") or "0x"
    to_address = None
    value = 0
    if len(topics) >= 3 and topics[0].lower() == TRANSFER_TOPIC:
        to_address = topic_to_address(topics[2])
        # ERC-721 lleva el tokenId en topics[3] y data vacío
        if len(topics) == 3 and len(data) == 66:
            value = hex_to_int(data)
    return TransactionLog(
        tx_hash=entry.get("transactionHash", ""),
        from_address=(entry.get("address") or "").lower(),
        to_address=to_address,
        value=value,
        data=data,
        topics=topics,
        block_number=hex_to_int(entry.get("blockNumber")),
    )


class ChainGateway:
    def __init__(self, providers: dict[int, EvmRpcClient], lookback_blocks: int = 10000):
        self.providers = dict(providers)
        self.lookback_blocks = lookback_blocks

    @property
    def connected(self) -> bool:
        return bool(self.providers)

    def client_for(self, chain_id: int) -> EvmRpcClient:
        client = self.providers.get(chain_id)
        if client is None:
            raise ProviderUnavailable(chain_id if self.providers else None)
        return client

    async def fetch_wallet_activity(self, address: str, chain_id: int) -> WalletActivity:
        client = self.client_for(chain_id)
        head = await client.block_number()
        from_block = max(0, head - self.lookback_blocks)

        log.info("fetching_wallet_activity", wallet=address, chain_id=chain_id,
                 from_block=from_block, to_block=head)

        sent = await client.get_logs(from_block, head, address=address)
        received = await client.get_logs(from_block, head,
                                         topics=[TRANSFER_TOPIC, None, pad_topic(address)])
        return WalletActivity(
            chain_id=chain_id,
            outbound_logs=tuple(parse_log(e) for e in sent),
            inbound_transfers=tuple(parse_log(e) for e in received),
            block_range=BlockRange(from_block, head),
        )

    async def get_transaction(self, chain_id: int, tx_hash: str) -> dict | None:
        return await self.client_for(chain_id).get_transaction(tx_hash)

    async def get_transaction_receipt(self, chain_id: int, tx_hash: str) -> dict | None:
        return await self.client_for(chain_id).get_transaction_receipt(tx_hash)
