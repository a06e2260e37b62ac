# bazaar_orders/material_service/main.py
from fastapi import FastAPI, HTTPException

app = FastAPI(title="Material Catalog (dev mock)")


MATERIALS = {
    "MAT001": {"id": "MAT001", "name": "Premium Mustard Oil", "price": 180, "unit": "liter", "supplier_id": "SUP001"},
    "MAT002": {"id": "MAT002", "name": "Garam Masala", "price": 320, "unit": "kg", "supplier_id": "SUP001"},
    "MAT003": {"id": "MAT003", "name": "Basmati Rice", "price": 95, "unit": "kg", "supplier_id": "SUP002"},
    "MAT004": {"id": "MAT004", "name": "Fresh Onions", "price": 40, "unit": "kg", "supplier_id": "SUP002"},
}


@app.get("/materials/{material_id}")
def get_material(material_id: str):
    material = MATERIALS.get(material_id)
    if not material:
        raise HTTPException(status_code=404, detail="Material not found")
    return material
