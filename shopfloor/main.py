import logging

from fastapi import FastAPI
from fastapi.responses import PlainTextResponse

from shopfloor.config import settings
from shopfloor.routers import inventory, purchasing, staff

logging.basicConfig(level=settings.log_level.upper())

app = FastAPI(title='Shopfloor Stock & Attendance Reconciliation')

app.include_router(inventory.router)
app.include_router(purchasing.router)
app.include_router(staff.router)


@app.get('/')
def root():
    return {'ok': True, 'service': 'shopfloor'}


@app.get('/robots.txt', response_class=PlainTextResponse)
def robots_txt() -> str:
    return 'User-agent: *\nDisallow: /\n'
