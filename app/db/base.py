# app/db/base.py
from sqlalchemy.orm import declarative_base

# Single declarative Base so every compliance table shares one MetaData
Base = declarative_base()
