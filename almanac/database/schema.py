"""Database schema for obligation records and settings."""

SCHEMA = """
-- Settings (key-value store)
CREATE TABLE IF NOT EXISTS settings (
    key TEXT PRIMARY KEY,
    value TEXT NOT NULL
);

-- Receivables (revenues)
CREATE TABLE IF NOT EXISTS receivables (
    id TEXT PRIMARY KEY,
    unit_id TEXT NOT NULL,
    account_id TEXT,
    party_id TEXT,
    amount TEXT NOT NULL,  -- Decimal as text, always positive
    expected_date TEXT NOT NULL,  -- YYYY-MM-DD
    actual_date TEXT,  -- YYYY-MM-DD, set when received
    status TEXT NOT NULL DEFAULT 'Pendente',
    category TEXT,
    observations TEXT,
    is_active INTEGER DEFAULT 1
);

-- Payables (expenses)
CREATE TABLE IF NOT EXISTS payables (
    id TEXT PRIMARY KEY,
    unit_id TEXT NOT NULL,
    account_id TEXT,
    party_id TEXT,
    amount TEXT NOT NULL,
    expected_date TEXT NOT NULL,
    actual_date TEXT,  -- set when paid
    status TEXT NOT NULL DEFAULT 'Pendente',
    category TEXT,
    observations TEXT,
    is_active INTEGER DEFAULT 1
);

-- Compensations (offsetting entries)
CREATE TABLE IF NOT EXISTS compensations (
    id TEXT PRIMARY KEY,
    unit_id TEXT NOT NULL,
    account_id TEXT,
    party_id TEXT,
    amount TEXT NOT NULL,
    expected_date TEXT NOT NULL,
    actual_date TEXT,
    status TEXT NOT NULL DEFAULT 'Previsto',
    category TEXT,
    observations TEXT,
    is_active INTEGER DEFAULT 1
);

CREATE INDEX IF NOT EXISTS idx_receivables_unit_date ON receivables(unit_id, expected_date);
CREATE INDEX IF NOT EXISTS idx_payables_unit_date ON payables(unit_id, expected_date);
CREATE INDEX IF NOT EXISTS idx_compensations_unit_date ON compensations(unit_id, expected_date);
"""

# Obligation kind -> table
TABLES = {
    "Receivable": "receivables",
    "Payable": "payables",
    "Compensation": "compensations",
}

OBLIGATION_COLUMNS = (
    "id",
    "unit_id",
    "account_id",
    "party_id",
    "amount",
    "expected_date",
    "actual_date",
    "status",
    "category",
    "observations",
    "is_active",
)
