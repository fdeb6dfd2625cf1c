from __future__ import annotations

from ..extensions import db


class MainCategory(db.Model):
    """Top-level item category (e.g. "Computers", "Office furniture")."""
    __tablename__ = "main_categories"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(200), nullable=False, unique=True)
    description = db.Column(db.Text, nullable=True)

    sub_categories = db.relationship("SubCategory", back_populates="main_category", lazy=True)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
        }


class SubCategory(db.Model):
    """
    Second-level category. Names are unique within their main category
    (case-insensitively, enforced by catalog_service).
    """
    __tablename__ = "sub_categories"
    __table_args__ = (
        db.UniqueConstraint("cat_id", "name", name="uq_sub_categories_cat_name"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(200), nullable=False)
    cat_id = db.Column(db.Integer, db.ForeignKey("main_categories.id"), nullable=False, index=True)
    description = db.Column(db.Text, nullable=True)

    main_category = db.relationship("MainCategory", back_populates="sub_categories")
    item_types = db.relationship("ItemType", back_populates="sub_category", lazy=True)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "cat_id": self.cat_id,
            "cat_name": self.main_category.name if self.main_category else None,
            "description": self.description,
        }


class ItemType(db.Model):
    """Model/brand line under a sub category (e.g. "Dell Desktop")."""
    __tablename__ = "item_types"
    __table_args__ = (
        db.UniqueConstraint("sub_cat_id", "name", name="uq_item_types_sub_cat_name"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(200), nullable=False)
    sub_cat_id = db.Column(db.Integer, db.ForeignKey("sub_categories.id"), nullable=False, index=True)

    sub_category = db.relationship("SubCategory", back_populates="item_types")

    def to_dict(self) -> dict:
        main_category = self.sub_category.main_category if self.sub_category else None
        return {
            "id": self.id,
            "name": self.name,
            "sub_cat_id": self.sub_cat_id,
            "sub_cat_name": self.sub_category.name if self.sub_category else None,
            "cat_id": main_category.id if main_category else None,
            "main_category_name": main_category.name if main_category else None,
        }


class Department(db.Model):
    __tablename__ = "departments"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(200), nullable=False, unique=True)

    def to_dict(self) -> dict:
        return {"id": self.id, "name": self.name}


class Rank(db.Model):
    __tablename__ = "ranks"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(200), nullable=False, unique=True)

    def to_dict(self) -> dict:
        return {"id": self.id, "name": self.name}


class Floor(db.Model):
    __tablename__ = "floors"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(200), nullable=False, unique=True)

    def to_dict(self) -> dict:
        return {"id": self.id, "name": self.name}
