"""
DynamoDB entity store.

DynamoDB is a key-value store, so the customer record is mapped onto a table
keyed by PartitionKey (HASH) + RowKey (RANGE), with a global secondary index
on Email for the query phase.
"""

import logging
import boto3
from botocore.exceptions import ClientError
from typing import Dict, Any, Iterator

from core.entity import CustomerEntity
from core.store import EntityStore, StoreType

logger = logging.getLogger(__name__)

EMAIL_INDEX = 'EmailIndex'


class DynamoDBStore(EntityStore):
    """
    DynamoDB store for benchmarking.

    Note: DynamoDB only indexes the key schema, so the Email lookup goes
    through a GSI. GSI reads are eventually consistent.
    """

    def __init__(self, config: Dict[str, Any]):
        super().__init__(config)
        self.store_type = StoreType.DYNAMODB
        self.connection = None  # boto3 client
        self.table_prefix = config.get('table_prefix', '')
        self.region = config.get('region', 'us-east-1')
        self.full_table_name = None

    def connect(self):
        """Connect to DynamoDB"""
        for name in ('boto3', 'botocore', 'urllib3'):
            logging.getLogger(name).setLevel(logging.WARNING)

        self.connection = boto3.client(
            'dynamodb',
            region_name=self.region,
            endpoint_url=self.config.get('endpoint_url'),
            aws_access_key_id=self.config.get('access_key_id'),
            aws_secret_access_key=self.config.get('secret_access_key')
        )
        logger.info("Connected to DynamoDB in %s", self.region)

    def disconnect(self):
        """Disconnect from DynamoDB"""
        # boto3 client doesn't need explicit disconnect
        self.connection = None

    def ensure_table(self, table_name: str):
        """
        Create the table and its Email index if the table doesn't exist.

        A table that another process is creating at the same time
        (ResourceInUseException) counts as existing.
        """
        if self.connection is None:
            raise RuntimeError("DynamoDBStore is not connected")

        full_table_name = self.table_prefix + table_name
        existing_tables = self._list_tables()

        if full_table_name in existing_tables:
            logger.info("Table %s already exists", full_table_name)
        else:
            try:
                self.connection.create_table(
                    TableName=full_table_name,
                    KeySchema=[
                        {'AttributeName': 'PartitionKey', 'KeyType': 'HASH'},
                        {'AttributeName': 'RowKey', 'KeyType': 'RANGE'},
                    ],
                    AttributeDefinitions=[
                        {'AttributeName': 'PartitionKey', 'AttributeType': 'S'},
                        {'AttributeName': 'RowKey', 'AttributeType': 'S'},
                        {'AttributeName': 'Email', 'AttributeType': 'S'},
                    ],
                    GlobalSecondaryIndexes=[
                        {
                            'IndexName': EMAIL_INDEX,
                            'KeySchema': [{'AttributeName': 'Email', 'KeyType': 'HASH'}],
                            'Projection': {'ProjectionType': 'ALL'},
                        }
                    ],
                    BillingMode='PAY_PER_REQUEST',  # On-demand pricing
                )
                logger.info("Created DynamoDB table %s", full_table_name)
            except ClientError as e:
                if e.response['Error']['Code'] != 'ResourceInUseException':
                    raise
                logger.info("Table %s is already being created", full_table_name)

        waiter = self.connection.get_waiter('table_exists')
        waiter.wait(TableName=full_table_name)

        self.table_name = table_name
        self.full_table_name = full_table_name

    def _list_tables(self):
        names = []
        kwargs = {}
        while True:
            response = self.connection.list_tables(**kwargs)
            names.extend(response.get('TableNames', []))
            last = response.get('LastEvaluatedTableName')
            if not last:
                return names
            kwargs['ExclusiveStartTableName'] = last

    def _table(self) -> str:
        if self.full_table_name is None:
            raise RuntimeError("ensure_table() must be called before any entity operation")
        return self.full_table_name

    def insert(self, entity: CustomerEntity):
        self.connection.put_item(
            TableName=self._table(),
            Item=self._convert_to_dynamodb_item(entity.to_table_entity()),
            ConditionExpression='attribute_not_exists(PartitionKey)',
        )

    def retrieve(self, partition_key: str, row_key: str) -> CustomerEntity:
        response = self.connection.get_item(
            TableName=self._table(),
            Key=self._key(partition_key, row_key),
        )
        if 'Item' not in response:
            raise KeyError(f"Entity {(partition_key, row_key)} not found")
        return CustomerEntity.from_table_entity(self._convert_from_dynamodb_item(response['Item']))

    def query_by_email(self, email: str) -> Iterator[CustomerEntity]:
        kwargs = {
            'TableName': self._table(),
            'IndexName': EMAIL_INDEX,
            'KeyConditionExpression': 'Email = :email',
            'ExpressionAttributeValues': {':email': {'S': email}},
        }
        while True:
            response = self.connection.query(**kwargs)
            for item in response.get('Items', []):
                yield CustomerEntity.from_table_entity(self._convert_from_dynamodb_item(item))
            last_key = response.get('LastEvaluatedKey')
            if not last_key:
                return
            kwargs['ExclusiveStartKey'] = last_key

    def replace(self, entity: CustomerEntity):
        self.connection.put_item(
            TableName=self._table(),
            Item=self._convert_to_dynamodb_item(entity.to_table_entity()),
            ConditionExpression='attribute_exists(PartitionKey)',
        )

    def delete(self, partition_key: str, row_key: str):
        self.connection.delete_item(
            TableName=self._table(),
            Key=self._key(partition_key, row_key),
            ConditionExpression='attribute_exists(PartitionKey)',
        )

    @staticmethod
    def _key(partition_key: str, row_key: str) -> Dict[str, Any]:
        return {'PartitionKey': {'S': partition_key}, 'RowKey': {'S': row_key}}

    def _convert_to_dynamodb_item(self, row: Dict[str, Any]) -> Dict[str, Any]:
        """
        Convert a flat dict of strings to DynamoDB item format.

        Example:
            {'Email': 'AB12CD@contoso.com'} → {'Email': {'S': 'AB12CD@contoso.com'}}
        """
        return {key: {'S': str(value)} for key, value in row.items() if value is not None}

    @staticmethod
    def _convert_from_dynamodb_item(item: Dict[str, Any]) -> Dict[str, Any]:
        return {key: value['S'] for key, value in item.items() if 'S' in value}
