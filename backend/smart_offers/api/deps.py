from typing import Optional
from fastapi import Header, HTTPException, status
from sqlmodel import Session
from smart_offers.db.session import engine


def get_db():
    with Session(engine) as session:
        yield session


async def get_current_shop(
    x_shopify_shop_domain: Optional[str] = Header(default=None),
) -> str:
    """Shop the admin request acts for; session verification happens upstream."""
    if not x_shopify_shop_domain:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing shop"
        )
    return x_shopify_shop_domain.strip().lower()
