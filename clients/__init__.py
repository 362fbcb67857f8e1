# Infrastructure clients
from clients.vault_client import (
    VaultClient,
    VaultError,
    get_valkey_url,
    get_email_config,
    get_admin_password,
)
from clients.valkey_client import ValkeyClient
from clients.email_client import EmailGatewayClient, EmailGatewayError
