"""
Modelos de base de datos (ORM).

Tres tablas planas clave/valor, una por tipo de objeto. Ninguna impone
unicidad de (objeto, clave): los duplicados son posibles y se toleran.
"""
from sqlalchemy import Column, String, Integer, Text

from repeater_batch.infrastructure.database.session import Base


class PostMetaModel(Base):
    """Metadatos de objetos tipo post."""
    
    __tablename__ = "postmeta"
    
    meta_id = Column(Integer, primary_key=True, autoincrement=True)
    post_id = Column(Integer, nullable=False, default=0, index=True)
    meta_key = Column(String(255), nullable=True, index=True)
    meta_value = Column(Text, nullable=True)
    
    def __repr__(self):
        return f"<PostMeta(meta_id={self.meta_id}, post_id={self.post_id}, key={self.meta_key})>"


class UserMetaModel(Base):
    """Metadatos de usuarios."""
    
    __tablename__ = "usermeta"
    
    umeta_id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, nullable=False, default=0, index=True)
    meta_key = Column(String(255), nullable=True, index=True)
    meta_value = Column(Text, nullable=True)
    
    def __repr__(self):
        return f"<UserMeta(umeta_id={self.umeta_id}, user_id={self.user_id}, key={self.meta_key})>"


class OptionModel(Base):
    """
    Opciones globales. El bucket del objeto va incluido en option_name.
    """
    
    __tablename__ = "options"
    
    option_id = Column(Integer, primary_key=True, autoincrement=True)
    option_name = Column(String(191), nullable=False, index=True)
    option_value = Column(Text, nullable=False, default="")
    autoload = Column(String(20), nullable=False, default="yes")
    
    def __repr__(self):
        return f"<Option(option_id={self.option_id}, name={self.option_name})>"
