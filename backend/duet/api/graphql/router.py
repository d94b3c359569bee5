from fastapi import Depends
from fastapi.responses import HTMLResponse
from sqlalchemy.ext.asyncio import AsyncSession
from strawberry.fastapi import GraphQLRouter
from strawberry.http.ides import get_graphql_ide_html

from duet.api.graphql.schema import schema
from duet.core.deps import USER_ID_KEY, get_current_user_id
from duet.database import get_db

GRAPHQL_PATH = "/graphql"


async def get_context(
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
) -> dict:
    """Resolver context; only built once the request gate has passed"""
    return {"db": db, USER_ID_KEY: user_id}


def graphiql_page(endpoint: str = GRAPHQL_PATH) -> HTMLResponse:
    """GraphiQL explorer served outside the gate.

    The stock page posts to its own URL, so it is pointed at the gated
    endpoint instead; queries still need an Authorization header.
    """
    html = get_graphql_ide_html(graphql_ide="graphiql").replace(
        'window.location.href.split("?")[0]',
        f'new URL("{endpoint}", window.location.href).toString()',
    )
    return HTMLResponse(html)


# The IDE lives at / instead
graphql_router = GraphQLRouter(schema, context_getter=get_context, graphql_ide=None)
