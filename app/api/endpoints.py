from fastapi import APIRouter

from app.api.routes import communications, contacts, expenses, health, quotes, tasks


router = APIRouter()

router.include_router(contacts.router)
router.include_router(communications.router)
router.include_router(tasks.router)
router.include_router(expenses.router)
router.include_router(quotes.router)
router.include_router(health.router)
