from decimal import Decimal

from tokenwatch.config import Settings

WALLET = "WaLLet1111111111111111111111111111111111111"
TOKEN = "LvmMint111111111111111111111111111111111111"


def make_settings(**overrides) -> Settings:
    values = dict(
        telegram_token="123:TEST",
        telegram_chat_id="-100123",
        client_wallet=WALLET,
        token_mint=TOKEN,
        helius_api_key="helius-key",
        token_name="Lovable Meme",
        token_symbol="LVM",
        wsol_vault="WsolVault",
        token_vault="LvmVault",
        rpc_url_override="https://rpc.test/",
        cryptocompare_api_key="cc-key",
        birdeye_api_key="",
        banner_image_path=None,
        banner_image_scale=1.0,
        transfers_db_path=":memory:",
        initial_page_size=100,
        steady_page_size=5,
        first_run_price_mode="historical_by_minute",
        steady_price_mode="live_spot",
        sol_price_fallback=Decimal("150"),
        token_price_fallback=Decimal("0.000036"),
        first_run_price_delay=0,
        live_price_delay=0,
        pool_price_delay=0,
        entry_delay=0,
        resend_delay=0,
    )
    values.update(overrides)
    return Settings(**values)
