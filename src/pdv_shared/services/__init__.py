"""Business services: catalog, tables, accounts, kitchen and cash register."""
