# product_service/main.py
from fastapi import FastAPI, HTTPException, Query

app = FastAPI(title="Product Service (dev mock)")


PRODUCTS = {
    1: {"id": 1, "name": "Keyboard", "price": 199.99, "discount": 0.0, "stock_quantity": 25},
    2: {"id": 2, "name": "Mouse", "price": 49.50, "discount": 4.50, "stock_quantity": 100},
    3: {"id": 3, "name": "Monitor", "price": 899.00, "discount": 50.00, "stock_quantity": 3},
}


@app.get("/products")
def get_products(ids: str = Query(..., description="comma separated product ids")):
    try:
        wanted = [int(i) for i in ids.split(",") if i.strip()]
    except ValueError:
        raise HTTPException(status_code=400, detail="ids must be integers")
    #unknown ids are left out, the caller decides what a missing product means
    return [PRODUCTS[i] for i in wanted if i in PRODUCTS]


@app.get("/products/{product_id}")
def get_product(product_id: int):
    product = PRODUCTS.get(product_id)
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")
    return product
