# Stored in PRAGMA user_version once the tables below exist.
SCHEMA_VERSION = 1

SCHEMA_SQL = r"""
-- Catalog (components and finished products share one table)
CREATE TABLE IF NOT EXISTS products (
  id INTEGER PRIMARY KEY AUTOINCREMENT,
  name TEXT NOT NULL,
  sku TEXT NOT NULL UNIQUE,
  description TEXT,
  price REAL NOT NULL DEFAULT 0 CHECK (price >= 0),
  stock INTEGER NOT NULL DEFAULT 0 CHECK (stock >= 0),
  category TEXT,
  product_type TEXT NOT NULL CHECK (product_type IN ('component', 'finished')),
  created_at TEXT NOT NULL,              -- ISO datetime
  updated_at TEXT NOT NULL
);

-- Bill of materials: one row per component of a finished product
CREATE TABLE IF NOT EXISTS product_recipes (
  id INTEGER PRIMARY KEY AUTOINCREMENT,
  finished_product_id INTEGER NOT NULL,
  component_id INTEGER NOT NULL,
  quantity_required INTEGER NOT NULL CHECK (quantity_required > 0),
  UNIQUE (finished_product_id, component_id),
  FOREIGN KEY (finished_product_id) REFERENCES products(id) ON DELETE CASCADE,
  FOREIGN KEY (component_id) REFERENCES products(id)
);

-- Production batches
CREATE TABLE IF NOT EXISTS production_batches (
  id INTEGER PRIMARY KEY AUTOINCREMENT,
  finished_product_id INTEGER NOT NULL,
  quantity_produced INTEGER NOT NULL CHECK (quantity_produced > 0),
  status TEXT NOT NULL DEFAULT 'in_progress',  -- in_progress / completed / cancelled
  notes TEXT,
  created_at TEXT NOT NULL,
  updated_at TEXT NOT NULL,
  FOREIGN KEY (finished_product_id) REFERENCES products(id) ON DELETE CASCADE
);

-- Consumption ledger (append-only)
CREATE TABLE IF NOT EXISTS production_batch_components (
  id INTEGER PRIMARY KEY AUTOINCREMENT,
  batch_id INTEGER NOT NULL,
  component_id INTEGER NOT NULL,
  quantity_used INTEGER NOT NULL CHECK (quantity_used > 0),
  FOREIGN KEY (batch_id) REFERENCES production_batches(id) ON DELETE CASCADE,
  FOREIGN KEY (component_id) REFERENCES products(id)
);

-- Purchases (stock in)
CREATE TABLE IF NOT EXISTS purchases (
  id INTEGER PRIMARY KEY AUTOINCREMENT,
  product_id INTEGER NOT NULL,
  quantity INTEGER NOT NULL CHECK (quantity > 0),
  unit_price REAL NOT NULL CHECK (unit_price >= 0),
  supplier TEXT,
  purchase_date TEXT NOT NULL,           -- ISO date
  total_amount REAL NOT NULL,
  notes TEXT,
  created_at TEXT NOT NULL,
  FOREIGN KEY (product_id) REFERENCES products(id)
);

-- Orders (checkout)
CREATE TABLE IF NOT EXISTS orders (
  id INTEGER PRIMARY KEY AUTOINCREMENT,
  order_number TEXT NOT NULL UNIQUE,
  total_amount REAL NOT NULL,
  payment_method TEXT NOT NULL,
  payment_status TEXT NOT NULL DEFAULT 'completed',
  order_status TEXT NOT NULL DEFAULT 'completed',
  created_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS order_items (
  id INTEGER PRIMARY KEY AUTOINCREMENT,
  order_id INTEGER NOT NULL,
  product_id INTEGER,
  product_name TEXT NOT NULL,
  sku TEXT NOT NULL,
  quantity INTEGER NOT NULL CHECK (quantity > 0),
  price REAL NOT NULL,
  FOREIGN KEY (order_id) REFERENCES orders(id) ON DELETE CASCADE,
  FOREIGN KEY (product_id) REFERENCES products(id) ON DELETE SET NULL
);

CREATE INDEX IF NOT EXISTS idx_recipes_finished ON product_recipes(finished_product_id);
CREATE INDEX IF NOT EXISTS idx_batches_created ON production_batches(created_at);
CREATE INDEX IF NOT EXISTS idx_purchases_date ON purchases(purchase_date);
CREATE INDEX IF NOT EXISTS idx_orders_created ON orders(created_at);
"""
