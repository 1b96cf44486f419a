import uuid

import pytest
from fastapi import HTTPException

from app.models.inventory import InventoryUnitStatus
from app.schemas.inventory import (
    InventoryUnitCreate,
    InventoryUnitUpdate,
    MaterialCreate,
    MaterialUpdate,
    StockAreaCreate,
    StockAreaUpdate,
)
from app.services.context import RequestContext
from app.services.inventory import inventory_units, materials, stock_areas


class TestMaterials:
    def test_create_and_get(self, db_session, ctx):
        material = materials.create(db_session, ctx, MaterialCreate(name="Drop Cable", product_code="DC-100"))
        assert material.uom == "PIECE(S)"
        assert materials.get(db_session, ctx, str(material.id)).name == "Drop Cable"

    def test_create_stamps_org(self, db_session, person):
        org_ctx = RequestContext(actor_id=person.id, org_id=uuid.uuid4())
        material = materials.create(db_session, org_ctx, MaterialCreate(name="Drop Cable", product_code="DC-100"))
        assert material.org_id == org_ctx.org_id
        other_org = RequestContext(actor_id=person.id, org_id=uuid.uuid4())
        with pytest.raises(HTTPException) as exc:
            materials.get(db_session, other_org, material.id)
        assert exc.value.status_code == 404

    def test_list_search(self, db_session, ctx, material, other_material):
        page = materials.list(db_session, ctx, search="fiber")
        assert [item.id for item in page.items] == [other_material.id]

    def test_list_rejects_unknown_order_by(self, db_session, ctx):
        with pytest.raises(HTTPException) as exc:
            materials.list(db_session, ctx, order_by="uom")
        assert exc.value.status_code == 400

    def test_update(self, db_session, ctx, material):
        updated = materials.update(db_session, ctx, material.id, MaterialUpdate(description="Dual band"))
        assert updated.description == "Dual band"
        assert updated.name == "ONT Router"

    def test_delete_is_soft(self, db_session, ctx, material):
        materials.delete(db_session, ctx, material.id)
        assert materials.get(db_session, ctx, material.id).is_active is False
        assert materials.list(db_session, ctx).total_items == 0


class TestStockAreas:
    def test_crud(self, db_session, ctx):
        area = stock_areas.create(db_session, ctx, StockAreaCreate(name="Depot B", location_code="WH-02"))
        updated = stock_areas.update(db_session, ctx, area.id, StockAreaUpdate(address="12 Dock Road"))
        assert updated.address == "12 Dock Road"
        assert stock_areas.list(db_session, ctx).total_items == 1
        stock_areas.delete(db_session, ctx, area.id)
        assert stock_areas.list(db_session, ctx).total_items == 0


class TestInventoryUnits:
    def test_create(self, db_session, ctx, material, stock_area):
        unit = inventory_units.create(
            db_session,
            ctx,
            InventoryUnitCreate(material_id=material.id, stock_area_id=stock_area.id, serial_number="SN-1"),
        )
        assert unit.status == InventoryUnitStatus.available
        assert unit.material.id == material.id

    def test_create_requires_known_material(self, db_session, ctx):
        with pytest.raises(HTTPException) as exc:
            inventory_units.create(db_session, ctx, InventoryUnitCreate(material_id=uuid.uuid4()))
        assert exc.value.status_code == 404

    def test_create_requires_known_stock_area(self, db_session, ctx, material):
        with pytest.raises(HTTPException) as exc:
            inventory_units.create(
                db_session, ctx, InventoryUnitCreate(material_id=material.id, stock_area_id=uuid.uuid4())
            )
        assert exc.value.status_code == 404

    def test_create_cannot_start_allocated(self, db_session, ctx, material):
        with pytest.raises(HTTPException) as exc:
            inventory_units.create(
                db_session,
                ctx,
                InventoryUnitCreate(material_id=material.id, status=InventoryUnitStatus.allocated),
            )
        assert exc.value.status_code == 400

    def test_list_filters(self, db_session, ctx, material, other_material, make_units):
        make_units(material, 2)
        make_units(other_material, 1, status=InventoryUnitStatus.faulty)
        assert inventory_units.list(db_session, ctx, material_id=str(material.id)).total_items == 2
        assert inventory_units.list(db_session, ctx, status="faulty").total_items == 1

    def test_list_rejects_unknown_status(self, db_session, ctx):
        with pytest.raises(HTTPException) as exc:
            inventory_units.list(db_session, ctx, status="lost")
        assert exc.value.status_code == 400

    def test_update_cannot_mark_allocated(self, db_session, ctx, material, make_units):
        unit = make_units(material, 1)[0]
        with pytest.raises(HTTPException) as exc:
            inventory_units.update(
                db_session, ctx, unit.id, InventoryUnitUpdate(status=InventoryUnitStatus.allocated)
            )
        assert exc.value.status_code == 400

    def test_update_cannot_release_allocated(self, db_session, ctx, material, make_units):
        unit = make_units(material, 1, status=InventoryUnitStatus.allocated)[0]
        with pytest.raises(HTTPException):
            inventory_units.update(
                db_session, ctx, unit.id, InventoryUnitUpdate(status=InventoryUnitStatus.available)
            )

    def test_update_marks_faulty(self, db_session, ctx, material, make_units):
        unit = make_units(material, 1)[0]
        updated = inventory_units.update(
            db_session, ctx, unit.id, InventoryUnitUpdate(status=InventoryUnitStatus.faulty)
        )
        assert updated.status == InventoryUnitStatus.faulty

    def test_delete_allocated_blocked(self, db_session, ctx, material, make_units):
        unit = make_units(material, 1, status=InventoryUnitStatus.allocated)[0]
        with pytest.raises(HTTPException):
            inventory_units.delete(db_session, ctx, unit.id)
