"""
PostgreSQL fixtures for integration tests.

A session-scoped container is started with testcontainers. Tests depending
on it are skipped when no container runtime is available.
"""
import logging

import psycopg
import pytest

logger = logging.getLogger(__name__)

SCANTEST_TABLE = r"""
CREATE TABLE IF NOT EXISTS scantest (
  bigid bigint DEFAULT 7,
  string text DEFAULT 'xy',
  n real DEFAULT 42.1,
  r double precision DEFAULT -0.000001,
  a text[] DEFAULT '{"AA","BB"}',
  x bytea DEFAULT '\x010203',
  xx bytea[] DEFAULT '{"0102", "x"}',
  xa int[] DEFAULT '{11,22}',
  sa smallint[] DEFAULT '{1,-2,3}',
  grid int[] DEFAULT '{{1,2},{3,4}}',
  born date DEFAULT '2023-05-15'
)
"""


@pytest.fixture(scope='session')
def psql_docker(request):
    """Session-scoped PostgreSQL container using testcontainers.
    """
    try:
        from testcontainers.postgres import PostgresContainer
    except ImportError:
        pytest.skip('testcontainers is not installed')

    container = PostgresContainer(
        image='postgres:16',
        username='postgres',
        password='postgres',
        dbname='test_db',
        driver=None,
    )
    try:
        container.start()
    except Exception as e:
        logger.warning(f'Could not start postgres container: {e}')
        pytest.skip(f'PostgreSQL container not available: {e}')

    logger.info(f'PostgreSQL container started at {container.get_connection_url()}')

    def finalizer():
        try:
            container.stop()
            logger.info('PostgreSQL container stopped')
        except Exception as e:
            logger.warning(f'Error stopping container: {e}')

    request.addfinalizer(finalizer)
    return container


@pytest.fixture
def conn(psql_docker):
    """
    Connection fixture with function scope, each test gets a freshly
    staged scantest table holding one row of default values.
    """
    cn = psycopg.connect(
        host=psql_docker.get_container_host_ip(),
        port=int(psql_docker.get_exposed_port(5432)),
        user='postgres',
        password='postgres',
        dbname='test_db',
    )
    try:
        with cn.cursor() as cursor:
            cursor.execute('DROP TABLE IF EXISTS scantest')
            cursor.execute(SCANTEST_TABLE)
            cursor.execute('INSERT INTO scantest DEFAULT VALUES')
        cn.commit()
        yield cn
    finally:
        try:
            cn.rollback()
            cn.close()
        except Exception as e:
            logger.warning(f'Error during connection cleanup: {e}')
