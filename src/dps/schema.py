SCHEMA_VERSION = 1

SCHEMA_SQL = """
PRAGMA foreign_keys = ON;

CREATE TABLE IF NOT EXISTS schema_version (
  version INTEGER PRIMARY KEY,
  applied_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS customers (
  id INTEGER PRIMARY KEY AUTOINCREMENT,
  username TEXT NOT NULL UNIQUE,
  first_name TEXT NULL,
  last_name TEXT NULL,
  email TEXT NULL,
  created_at TEXT NOT NULL,
  deleted_at TEXT NULL
);

CREATE TABLE IF NOT EXISTS dfacs (
  id INTEGER PRIMARY KEY AUTOINCREMENT,
  dfac_name TEXT NOT NULL UNIQUE,
  street_address TEXT NULL,
  city TEXT NULL,
  state_abb TEXT NULL,
  zip TEXT NULL,
  dfac_phone TEXT NULL,
  flash_msg1 TEXT NULL,
  flash_msg2 TEXT NULL,
  bf_hours TEXT NULL,
  lu_hours TEXT NULL,
  dn_hours TEXT NULL,
  bch_hours TEXT NULL,
  sup_hours TEXT NULL,
  order_timebf TEXT NULL,
  order_timelu TEXT NULL,
  order_timedn TEXT NULL,
  order_timebch TEXT NULL,
  order_timesup TEXT NULL,
  created_at TEXT NOT NULL,
  updated_at TEXT NULL,
  deleted_at TEXT NULL
);

CREATE TABLE IF NOT EXISTS meals (
  id INTEGER PRIMARY KEY AUTOINCREMENT,
  dfac_id INTEGER NOT NULL REFERENCES dfacs(id),
  meal_name TEXT NOT NULL,
  description TEXT NULL,
  type TEXT NULL,
  price NUMERIC NOT NULL,
  img_pic TEXT NULL,
  likes INTEGER NOT NULL DEFAULT 0,
  created_at TEXT NOT NULL,
  updated_at TEXT NULL,
  deleted_at TEXT NULL
);
CREATE INDEX IF NOT EXISTS idx_meals_dfac ON meals(dfac_id);

CREATE TABLE IF NOT EXISTS orders (
  id INTEGER PRIMARY KEY AUTOINCREMENT,
  customer_id INTEGER NOT NULL REFERENCES customers(id),
  dfac_id INTEGER NOT NULL REFERENCES dfacs(id),
  comments TEXT NULL,
  to_go INTEGER NOT NULL DEFAULT 1,
  order_timestamp TEXT NOT NULL,
  ready_for_pickup TEXT NULL,
  picked_up TEXT NULL,
  canceled INTEGER NOT NULL DEFAULT 0,
  canceled_at TEXT NULL,
  favorite INTEGER NOT NULL DEFAULT 0,
  deleted_at TEXT NULL
);
CREATE INDEX IF NOT EXISTS idx_orders_customer ON orders(customer_id, order_timestamp);

CREATE TABLE IF NOT EXISTS order_meals (
  id INTEGER PRIMARY KEY AUTOINCREMENT,
  order_id INTEGER NOT NULL REFERENCES orders(id),
  meal_id INTEGER NOT NULL REFERENCES meals(id),
  quantity INTEGER NOT NULL CHECK (quantity > 0),
  special_instructions TEXT NULL,
  price_at_order NUMERIC NULL
);
CREATE INDEX IF NOT EXISTS idx_order_meals_order ON order_meals(order_id);

CREATE TRIGGER IF NOT EXISTS trg_order_meals_price_at_order
AFTER INSERT ON order_meals
FOR EACH ROW WHEN NEW.price_at_order IS NULL
BEGIN
  UPDATE order_meals
  SET price_at_order = (SELECT price FROM meals WHERE id = NEW.meal_id)
  WHERE id = NEW.id;
END;
"""
