"""SQLite implementation of inventory storage."""

from datetime import date, datetime, timedelta

import aiosqlite

from src.config import get_logger
from src.core.entities.allocation import AllocationPlan, MatchKey
from src.core.entities.inventory import (
    Drug,
    InventoryStats,
    InventoryUnit,
    Lot,
    SortOrder,
    StockFilter,
    Transaction,
    TransactionFilter,
    TransactionType,
    UnitFilter,
    UnitSortField,
)
from src.core.exceptions import CommitConflictError, DatabaseError, UnitNotFoundError
from src.core.interfaces.inventory_store import IInventoryStore
from src.core.services.unit_adjustment import apply_adjustment
from src.infrastructure.storage.sqlite.connection import (
    get_connection,
    get_transaction,
    get_write_transaction,
)

logger = get_logger(__name__)

UNIT_SELECT = """
    SELECT
        u.*,
        d.medication_name, d.generic_name, d.strength, d.strength_unit,
        d.form, d.ndc_id, d.created_at AS drug_created_at
    FROM inventory_units u
    JOIN drugs d ON d.id = u.drug_id
"""

FEFO_ORDER = "ORDER BY u.expiry_date ASC, u.created_at ASC, u.id ASC"


def _parse_datetime(value: str | None) -> datetime:
    if value:
        try:
            return datetime.fromisoformat(value)
        except (ValueError, TypeError):
            pass
    return datetime.utcnow()


def _parse_date(value: str | None) -> date | None:
    if value:
        try:
            return date.fromisoformat(value[:10])
        except (ValueError, TypeError):
            pass
    return None


def _match_clause(match_key: MatchKey) -> tuple[str, tuple]:
    """SQL predicate on the drugs table (alias d) for a match key."""
    if match_key.uses_ndc:
        return "TRIM(d.ndc_id) = ?", (match_key.normalized_ndc,)
    return (
        "LOWER(TRIM(d.medication_name)) = ? "
        "AND d.strength IS NOT NULL AND ABS(d.strength - ?) < 0.000001 "
        "AND LOWER(TRIM(d.strength_unit)) = ?",
        (
            (match_key.medication_name or "").strip().lower(),
            match_key.strength,
            (match_key.strength_unit or "").strip().lower(),
        ),
    )


def _unit_order(filters: UnitFilter) -> str:
    """ORDER BY for the unit list; FEFO unless a sort column is chosen."""
    if filters.sort_by is None:
        return FEFO_ORDER
    direction = "DESC" if filters.sort_order == SortOrder.DESC else "ASC"
    columns = {
        UnitSortField.MEDICATION_NAME: (
            f"LOWER(d.medication_name) {direction}, u.expiry_date ASC, u.id ASC"
        ),
        UnitSortField.EXPIRY_DATE: f"u.expiry_date {direction}, u.created_at ASC, u.id ASC",
        UnitSortField.QUANTITY: f"u.available_quantity {direction}, u.id ASC",
        UnitSortField.CREATED_DATE: f"u.created_at {direction}, u.id {direction}",
    }
    return f"ORDER BY {columns[filters.sort_by]}"


class SQLiteInventoryStore(IInventoryStore):
    """SQLite implementation of drug, lot, unit and transaction storage."""

    # ------------------------------------------------------------------ drugs

    async def create_drug(self, drug: Drug) -> Drug:
        """Create a new drug."""
        async with get_transaction() as conn:
            return await self._insert_drug(conn, drug)

    async def get_drug(self, drug_id: int) -> Drug | None:
        """Get drug by ID."""
        async with get_connection() as conn:
            cursor = await conn.execute("SELECT * FROM drugs WHERE id = ?", (drug_id,))
            row = await cursor.fetchone()
            return self._row_to_drug(row) if row else None

    async def find_drug(self, match_key: MatchKey) -> Drug | None:
        """Find the drug identified by an NDC or name/strength triple."""
        clause, params = _match_clause(match_key)
        async with get_connection() as conn:
            cursor = await conn.execute(
                f"SELECT * FROM drugs d WHERE {clause} ORDER BY d.id LIMIT 1",
                params,
            )
            row = await cursor.fetchone()
            return self._row_to_drug(row) if row else None

    # ------------------------------------------------------------------- lots

    async def create_lot(self, lot: Lot) -> Lot:
        """Create a new lot."""
        lot.created_at = datetime.utcnow()
        async with get_transaction() as conn:
            cursor = await conn.execute(
                """
                INSERT INTO lots (lot_code, source, note, location, max_capacity, created_at)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (
                    lot.lot_code,
                    lot.source,
                    lot.note,
                    lot.location,
                    lot.max_capacity,
                    lot.created_at.isoformat(),
                ),
            )
            lot.id = cursor.lastrowid
            logger.info("lot_created", lot_id=lot.id, lot_code=lot.lot_code)
            return lot

    async def get_lot(self, lot_id: int) -> Lot | None:
        """Get lot by ID."""
        async with get_connection() as conn:
            cursor = await conn.execute("SELECT * FROM lots WHERE id = ?", (lot_id,))
            row = await cursor.fetchone()
            return self._row_to_lot(row) if row else None

    async def list_lots(self, limit: int = 100, offset: int = 0) -> list[Lot]:
        """List lots, newest first."""
        async with get_connection() as conn:
            cursor = await conn.execute(
                "SELECT * FROM lots ORDER BY created_at DESC, id DESC LIMIT ? OFFSET ?",
                (limit, offset),
            )
            rows = await cursor.fetchall()
            return [self._row_to_lot(row) for row in rows]

    # ------------------------------------------------------------------ units

    async def get_unit(self, unit_id: str) -> InventoryUnit | None:
        """Get unit by ID with its drug joined."""
        async with get_connection() as conn:
            cursor = await conn.execute(f"{UNIT_SELECT} WHERE u.id = ?", (unit_id,))
            row = await cursor.fetchone()
            return self._row_to_unit(row) if row else None

    async def get_units(self, unit_ids: list[str]) -> list[InventoryUnit]:
        """Get several units by ID; missing IDs are skipped."""
        if not unit_ids:
            return []
        placeholders = ", ".join("?" for _ in unit_ids)
        async with get_connection() as conn:
            cursor = await conn.execute(
                f"{UNIT_SELECT} WHERE u.id IN ({placeholders}) {FEFO_ORDER}",
                tuple(unit_ids),
            )
            rows = await cursor.fetchall()
            return [self._row_to_unit(row) for row in rows]

    async def search_units(
        self,
        filters: UnitFilter | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> tuple[list[InventoryUnit], int]:
        """One page of units matching the filter, with the total match count."""
        filters = filters or UnitFilter()
        conditions: list[str] = []
        params: list = []

        if filters.query and filters.query.strip():
            pattern = f"%{filters.query.strip()}%"
            conditions.append(
                "(d.medication_name LIKE ? OR d.generic_name LIKE ? "
                "OR d.ndc_id LIKE ? OR u.id LIKE ?)"
            )
            params.extend([pattern] * 4)
        if filters.lot_id is not None:
            conditions.append("u.lot_id = ?")
            params.append(filters.lot_id)
        if filters.location and filters.location.strip():
            conditions.append(
                "u.lot_id IN (SELECT id FROM lots WHERE LOWER(location) LIKE ?)"
            )
            params.append(f"%{filters.location.strip().lower()}%")
        if filters.expiry_start is not None:
            conditions.append("u.expiry_date >= ?")
            params.append(filters.expiry_start.isoformat())
        if filters.expiry_end is not None:
            conditions.append("u.expiry_date <= ?")
            params.append(filters.expiry_end.isoformat())
        if filters.stock == StockFilter.IN_STOCK:
            conditions.append("u.available_quantity > 0")
        elif filters.stock == StockFilter.OUT_OF_STOCK:
            conditions.append("u.available_quantity <= 0")

        where = f"WHERE {' AND '.join(conditions)}" if conditions else ""
        async with get_connection() as conn:
            cursor = await conn.execute(
                f"""
                SELECT COUNT(*) FROM inventory_units u
                JOIN drugs d ON d.id = u.drug_id
                {where}
                """,
                tuple(params),
            )
            total = (await cursor.fetchone())[0]

            cursor = await conn.execute(
                f"{UNIT_SELECT} {where} {_unit_order(filters)} LIMIT ? OFFSET ?",
                (*params, limit, offset),
            )
            rows = await cursor.fetchall()
            return [self._row_to_unit(row) for row in rows], total

    async def find_units_by_match_key(self, match_key: MatchKey) -> list[InventoryUnit]:
        """Units with stock whose drug matches the key, in FEFO order."""
        clause, params = _match_clause(match_key)
        async with get_connection() as conn:
            cursor = await conn.execute(
                f"{UNIT_SELECT} WHERE {clause} AND u.available_quantity > 0 {FEFO_ORDER}",
                params,
            )
            rows = await cursor.fetchall()
            return [self._row_to_unit(row) for row in rows]

    async def create_units(
        self,
        units: list[InventoryUnit],
        acting_user: str,
        notes: str | None = None,
        drug: Drug | None = None,
    ) -> tuple[list[InventoryUnit], list[Transaction]]:
        """
        Insert units and one check_in transaction each, atomically.

        A drug without an id is inserted in the same transaction and the
        units are attached to it, so a failed check-in leaves no drug row.
        """
        transactions: list[Transaction] = []
        try:
            async with get_transaction() as conn:
                if drug is not None:
                    if drug.id is None:
                        await self._insert_drug(conn, drug)
                    for unit in units:
                        unit.drug_id = drug.id  # type: ignore[assignment]
                        unit.drug = drug

                for unit in units:
                    await conn.execute(
                        """
                        INSERT INTO inventory_units (
                            id, drug_id, lot_id, total_quantity, available_quantity,
                            expiry_date, manufacturer_lot_number, notes,
                            created_at, updated_at
                        ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                        """,
                        (
                            unit.id,
                            unit.drug_id,
                            unit.lot_id,
                            unit.total_quantity,
                            unit.available_quantity,
                            unit.expiry_date.isoformat(),
                            unit.manufacturer_lot_number,
                            unit.notes,
                            unit.created_at.isoformat(),
                            unit.updated_at.isoformat(),
                        ),
                    )
                    transactions.append(
                        await self._insert_transaction(
                            conn,
                            Transaction(
                                unit_id=unit.id,
                                transaction_type=TransactionType.CHECK_IN,
                                quantity=unit.total_quantity,
                                acting_user=acting_user,
                                notes=notes,
                            ),
                        )
                    )
        except aiosqlite.Error as e:
            raise DatabaseError("create_units", str(e)) from e

        logger.info("units_checked_in", count=len(units), acting_user=acting_user)
        return units, transactions

    async def adjust_unit(
        self,
        unit_id: str,
        acting_user: str,
        total_quantity: float | None = None,
        available_quantity: float | None = None,
        expiry_date: date | None = None,
        notes: str | None = None,
        reason: str | None = None,
    ) -> tuple[InventoryUnit, Transaction]:
        """Apply a manual correction and record an adjust transaction, atomically."""
        try:
            async with get_write_transaction() as conn:
                cursor = await conn.execute(f"{UNIT_SELECT} WHERE u.id = ?", (unit_id,))
                row = await cursor.fetchone()
                if row is None:
                    raise UnitNotFoundError(unit_id)

                current = self._row_to_unit(row)
                updated, delta = apply_adjustment(
                    current,
                    total_quantity=total_quantity,
                    available_quantity=available_quantity,
                    expiry_date=expiry_date,
                    notes=notes,
                )

                await conn.execute(
                    """
                    UPDATE inventory_units SET
                        total_quantity = ?,
                        available_quantity = ?,
                        expiry_date = ?,
                        notes = ?,
                        updated_at = ?
                    WHERE id = ?
                    """,
                    (
                        updated.total_quantity,
                        updated.available_quantity,
                        updated.expiry_date.isoformat(),
                        updated.notes,
                        updated.updated_at.isoformat(),
                        unit_id,
                    ),
                )
                transaction = await self._insert_transaction(
                    conn,
                    Transaction(
                        unit_id=unit_id,
                        transaction_type=TransactionType.ADJUST,
                        quantity=delta,
                        acting_user=acting_user,
                        notes=reason,
                    ),
                )
        except aiosqlite.Error as e:
            raise DatabaseError("adjust_unit", str(e)) from e

        logger.info(
            "unit_adjusted",
            unit_id=unit_id,
            delta=delta,
            available=updated.available_quantity,
            total=updated.total_quantity,
        )
        return updated, transaction

    # -------------------------------------------------------------- check-out

    async def commit_check_out(
        self,
        plan: AllocationPlan,
        acting_user: str,
        notes: str | None = None,
        patient_name: str | None = None,
        patient_reference_id: str | None = None,
    ) -> list[Transaction]:
        """
        Apply an allocation plan all-or-nothing.

        Each decrement is conditional on the unit still holding at least
        the planned quantity. The first failed condition raises
        CommitConflictError and the write transaction rolls back, so no
        unit is decremented and no transaction row survives.
        """
        transactions: list[Transaction] = []
        try:
            async with get_write_transaction() as conn:
                now = datetime.utcnow()
                for entry in plan.entries:
                    cursor = await conn.execute(
                        """
                        UPDATE inventory_units SET
                            available_quantity = ROUND(available_quantity - ?, 6),
                            updated_at = ?
                        WHERE id = ? AND available_quantity >= ?
                        """,
                        (
                            entry.quantity_taken,
                            now.isoformat(),
                            entry.unit_id,
                            entry.quantity_taken,
                        ),
                    )
                    if cursor.rowcount != 1:
                        logger.warning(
                            "check_out_conflict",
                            unit_id=entry.unit_id,
                            quantity_taken=entry.quantity_taken,
                            available_at_plan=entry.available_before,
                        )
                        raise CommitConflictError(entry.unit_id, entry.quantity_taken)

                    transactions.append(
                        await self._insert_transaction(
                            conn,
                            Transaction(
                                unit_id=entry.unit_id,
                                transaction_type=TransactionType.CHECK_OUT,
                                quantity=entry.quantity_taken,
                                acting_user=acting_user,
                                notes=notes,
                                patient_name=patient_name,
                                patient_reference_id=patient_reference_id,
                                timestamp=now,
                                medication_name=entry.medication_name,
                            ),
                        )
                    )
        except aiosqlite.Error as e:
            raise DatabaseError("commit_check_out", str(e)) from e

        logger.info(
            "check_out_committed",
            units=len(transactions),
            total=plan.total_quantity,
            acting_user=acting_user,
        )
        return transactions

    # -------------------------------------------------------------- reporting

    async def list_transactions(
        self,
        filters: TransactionFilter | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> tuple[list[Transaction], int]:
        """Transactions newest first, with the total count for the filter."""
        filters = filters or TransactionFilter()
        conditions: list[str] = []
        params: list = []

        if filters.transaction_type is not None:
            conditions.append("t.transaction_type = ?")
            params.append(filters.transaction_type.value)
        if filters.start_date is not None:
            conditions.append("t.timestamp >= ?")
            params.append(filters.start_date.isoformat())
        if filters.end_date is not None:
            conditions.append("t.timestamp < ?")
            params.append((filters.end_date + timedelta(days=1)).isoformat())
        if filters.medication_name:
            conditions.append("LOWER(d.medication_name) LIKE ?")
            params.append(f"%{filters.medication_name.strip().lower()}%")
        if filters.unit_id:
            conditions.append("t.unit_id = ?")
            params.append(filters.unit_id)

        where = f"WHERE {' AND '.join(conditions)}" if conditions else ""
        joins = """
            FROM inventory_transactions t
            JOIN inventory_units u ON u.id = t.unit_id
            JOIN drugs d ON d.id = u.drug_id
        """

        async with get_connection() as conn:
            cursor = await conn.execute(f"SELECT COUNT(*) {joins} {where}", tuple(params))
            total = (await cursor.fetchone())[0]

            cursor = await conn.execute(
                f"""
                SELECT t.*, d.medication_name {joins} {where}
                ORDER BY t.timestamp DESC, t.id DESC
                LIMIT ? OFFSET ?
                """,
                (*params, limit, offset),
            )
            rows = await cursor.fetchall()
            return [self._row_to_transaction(row) for row in rows], total

    async def get_stats(
        self,
        expiring_before: date,
        recent_since: datetime,
        low_stock_threshold: float,
    ) -> InventoryStats:
        """Dashboard counters."""
        async with get_connection() as conn:
            cursor = await conn.execute(
                """
                SELECT
                    COUNT(*),
                    SUM(CASE WHEN expiry_date <= ? THEN 1 ELSE 0 END)
                FROM inventory_units
                WHERE available_quantity > 0
                """,
                (expiring_before.isoformat(),),
            )
            total_units, expiring = await cursor.fetchone()

            cursor = await conn.execute(
                """
                SELECT transaction_type, COUNT(*)
                FROM inventory_transactions
                WHERE timestamp >= ?
                GROUP BY transaction_type
                """,
                (recent_since.isoformat(),),
            )
            recent = {row[0]: row[1] for row in await cursor.fetchall()}

            cursor = await conn.execute(
                """
                SELECT COUNT(*) FROM (
                    SELECT drug_id, SUM(available_quantity) AS available
                    FROM inventory_units
                    GROUP BY drug_id
                    HAVING available < ?
                )
                """,
                (low_stock_threshold,),
            )
            low_stock = (await cursor.fetchone())[0]

        return InventoryStats(
            total_units=total_units or 0,
            units_expiring_soon=expiring or 0,
            recent_check_ins=recent.get(TransactionType.CHECK_IN.value, 0),
            recent_check_outs=recent.get(TransactionType.CHECK_OUT.value, 0),
            low_stock_alerts=low_stock or 0,
        )

    # ---------------------------------------------------------------- helpers

    @staticmethod
    async def _insert_drug(conn: aiosqlite.Connection, drug: Drug) -> Drug:
        drug.created_at = datetime.utcnow()
        cursor = await conn.execute(
            """
            INSERT INTO drugs (
                medication_name, generic_name, strength, strength_unit,
                form, ndc_id, created_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?)
            """,
            (
                drug.medication_name.strip(),
                drug.generic_name,
                drug.strength,
                drug.strength_unit,
                drug.form,
                drug.ndc_id.strip() if drug.ndc_id else None,
                drug.created_at.isoformat(),
            ),
        )
        drug.id = cursor.lastrowid
        logger.info("drug_created", drug_id=drug.id, name=drug.medication_name)
        return drug

    @staticmethod
    async def _insert_transaction(
        conn: aiosqlite.Connection, transaction: Transaction
    ) -> Transaction:
        cursor = await conn.execute(
            """
            INSERT INTO inventory_transactions (
                unit_id, transaction_type, quantity, acting_user, notes,
                patient_name, patient_reference_id, timestamp
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                transaction.unit_id,
                transaction.transaction_type.value,
                transaction.quantity,
                transaction.acting_user,
                transaction.notes,
                transaction.patient_name,
                transaction.patient_reference_id,
                transaction.timestamp.isoformat(),
            ),
        )
        transaction.id = cursor.lastrowid
        return transaction

    @staticmethod
    def _row_to_drug(row: aiosqlite.Row) -> Drug:
        """Convert a database row to a Drug entity."""
        return Drug(
            id=row["id"],
            medication_name=row["medication_name"],
            generic_name=row["generic_name"],
            strength=row["strength"],
            strength_unit=row["strength_unit"],
            form=row["form"],
            ndc_id=row["ndc_id"],
            created_at=_parse_datetime(row["created_at"]),
        )

    @staticmethod
    def _row_to_lot(row: aiosqlite.Row) -> Lot:
        """Convert a database row to a Lot entity."""
        return Lot(
            id=row["id"],
            lot_code=row["lot_code"],
            source=row["source"],
            note=row["note"],
            location=row["location"],
            max_capacity=row["max_capacity"],
            created_at=_parse_datetime(row["created_at"]),
        )

    @staticmethod
    def _row_to_unit(row: aiosqlite.Row) -> InventoryUnit:
        """Convert a joined unit/drug row to an InventoryUnit entity."""
        return InventoryUnit(
            id=row["id"],
            drug_id=row["drug_id"],
            lot_id=row["lot_id"],
            total_quantity=float(row["total_quantity"]),
            available_quantity=float(row["available_quantity"]),
            expiry_date=_parse_date(row["expiry_date"]) or date.max,
            manufacturer_lot_number=row["manufacturer_lot_number"],
            notes=row["notes"],
            created_at=_parse_datetime(row["created_at"]),
            updated_at=_parse_datetime(row["updated_at"]),
            drug=Drug(
                id=row["drug_id"],
                medication_name=row["medication_name"],
                generic_name=row["generic_name"],
                strength=row["strength"],
                strength_unit=row["strength_unit"],
                form=row["form"],
                ndc_id=row["ndc_id"],
                created_at=_parse_datetime(row["drug_created_at"]),
            ),
        )

    @staticmethod
    def _row_to_transaction(row: aiosqlite.Row) -> Transaction:
        """Convert a database row to a Transaction entity."""
        return Transaction(
            id=row["id"],
            unit_id=row["unit_id"],
            transaction_type=TransactionType(row["transaction_type"]),
            quantity=float(row["quantity"]),
            acting_user=row["acting_user"],
            notes=row["notes"],
            patient_name=row["patient_name"],
            patient_reference_id=row["patient_reference_id"],
            timestamp=_parse_datetime(row["timestamp"]),
            medication_name=row["medication_name"],
        )
