"""Supabase-backed key-value store."""

from dataclasses import dataclass

from supabase import Client

from food_logger.services.key_value import KeyValueStore


@dataclass
class SupabaseKeyValueStore(KeyValueStore):
    """Stores values in a two-column ``key``/``value`` table."""

    client: Client
    table: str = "kv_store"

    async def get_item(self, key: str) -> str | None:
        """Return the stored value for a key."""
        response = (
            self.client.table(self.table)
            .select("value")
            .eq("key", key)
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        value = response.data[0].get("value")
        return str(value) if value is not None else None

    async def set_item(self, key: str, value: str) -> None:
        """Insert or overwrite a key."""
        self.client.table(self.table).upsert(
            {"key": key, "value": value}, on_conflict="key"
        ).execute()

    async def remove_item(self, key: str) -> None:
        """Delete a key."""
        self.client.table(self.table).delete().eq("key", key).execute()
