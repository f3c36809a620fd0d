"""ONIX 2.1 short-tag to reference-tag expansion.

ONIX 2.1 defines a compact alternative to reference names (``<a001>``
instead of ``<RecordReference>``, ``<product>`` instead of
``<Product>``). The 2.1 parser only understands reference names, so
short-tag documents are rewritten textually before parsing.
"""

from __future__ import annotations

import re
from types import MappingProxyType

DETECTION_WINDOW = 2000

_SHORT_TAG_RE = re.compile(r"<[a-z]\d{3}[\s/>]", re.IGNORECASE)

SHORT_TAG_MAP: MappingProxyType[str, str] = MappingProxyType(
    {
        # Composites
        "onixmessage": "ONIXMessage",
        "header": "Header",
        "senderidentifier": "SenderIdentifier",
        "addresseeidentifier": "AddresseeIdentifier",
        "product": "Product",
        "productidentifier": "ProductIdentifier",
        "productformfeature": "ProductFormFeature",
        "productclassification": "ProductClassification",
        "epubusageconstraint": "EpubUsageConstraint",
        "containeditem": "ContainedItem",
        "series": "Series",
        "seriesidentifier": "SeriesIdentifier",
        "set": "Set",
        "title": "Title",
        "workidentifier": "WorkIdentifier",
        "website": "Website",
        "contributor": "Contributor",
        "personnameidentifier": "PersonNameIdentifier",
        "name": "Name",
        "personaldates": "PersonalDates",
        "professionalaffiliation": "ProfessionalAffiliation",
        "conference": "Conference",
        "language": "Language",
        "extent": "Extent",
        "illustrations": "Illustrations",
        "mainsubject": "MainSubject",
        "subject": "Subject",
        "audience": "Audience",
        "audiencerange": "AudienceRange",
        "complexity": "Complexity",
        "othertext": "OtherText",
        "mediafile": "MediaFile",
        "productwebsite": "ProductWebsite",
        "prize": "Prize",
        "contentitem": "ContentItem",
        "imprint": "Imprint",
        "publisher": "Publisher",
        "salesrights": "SalesRights",
        "notforsale": "NotForSale",
        "salesrestriction": "SalesRestriction",
        "measure": "Measure",
        "relatedproduct": "RelatedProduct",
        "supplydetail": "SupplyDetail",
        "supplieridentifier": "SupplierIdentifier",
        "stock": "Stock",
        "price": "Price",
        "discountcoded": "DiscountCoded",
        "marketrepresentation": "MarketRepresentation",
        "marketdate": "MarketDate",
        "copyrightstatement": "CopyrightStatement",
        "copyrightowner": "CopyrightOwner",
        # Header
        "m172": "FromEANNumber",
        "m173": "FromSAN",
        "m174": "FromCompany",
        "m175": "FromPerson",
        "m283": "FromEmail",
        "m176": "ToEANNumber",
        "m177": "ToSAN",
        "m178": "ToCompany",
        "m179": "ToPerson",
        "m180": "MessageNumber",
        "m181": "MessageRepeat",
        "m182": "SentDate",
        "m183": "MessageNote",
        "m184": "DefaultLanguageOfText",
        "m185": "DefaultPriceTypeCode",
        "m186": "DefaultCurrencyCode",
        "m187": "DefaultLinearUnit",
        "m188": "DefaultWeightUnit",
        "m193": "DefaultClassOfTrade",
        "m379": "SenderIDType",
        "m380": "AddresseeIDType",
        # Record metadata
        "a001": "RecordReference",
        "a002": "NotificationType",
        "a198": "DeletionCode",
        "a199": "DeletionText",
        "a194": "RecordSourceType",
        "a195": "RecordSourceIdentifierType",
        "a196": "RecordSourceIdentifier",
        "a197": "RecordSourceName",
        # Product identification
        "b004": "ISBN",
        "b005": "EAN13",
        "b006": "UPC",
        "b007": "PublisherProductNo",
        "b008": "ISMN",
        "b009": "DOI",
        "b010": "ReplacesISBN",
        "b011": "ReplacesEAN13",
        "b221": "ProductIDType",
        "b233": "IDTypeName",
        "b244": "IDValue",
        "b246": "Barcode",
        "b241": "NameCodeType",
        "b242": "NameCodeTypeName",
        # Product form
        "b012": "ProductForm",
        "b333": "ProductFormDetail",
        "b334": "ProductFormFeatureType",
        "b335": "ProductFormFeatureValue",
        "b336": "ProductFormFeatureDescription",
        "b013": "BookFormDetail",
        "b225": "ProductPackaging",
        "b014": "ProductFormDescription",
        "b210": "NumberOfPieces",
        "b384": "TradeCategory",
        "b385": "ProductContentType",
        "b211": "EpubType",
        "b212": "EpubTypeVersion",
        "b213": "EpubTypeDescription",
        "b214": "EpubFormat",
        "b215": "EpubFormatVersion",
        "b216": "EpubFormatDescription",
        "b278": "EpubSource",
        "b279": "EpubSourceVersion",
        "b280": "EpubSourceDescription",
        "b277": "EpubTypeNote",
        "b015": "ItemQuantity",
        "b274": "ProductClassificationType",
        "b275": "ProductClassificationCode",
        "b337": "Percent",
        # Series and set
        "b016": "SeriesISSN",
        "b017": "PublisherSeriesCode",
        "b018": "TitleOfSeries",
        "b019": "NumberWithinSeries",
        "b020": "YearOfAnnual",
        "b273": "SeriesIDType",
        "b023": "TitleOfSet",
        "b024": "SetPartNumber",
        "b025": "SetItemTitle",
        "b026": "ItemNumberWithinSet",
        "b284": "LevelSequenceNumber",
        # Titles
        "b027": "TextCaseFlag",
        "b028": "DistinctiveTitle",
        "b029": "Subtitle",
        "b030": "TitlePrefix",
        "b031": "TitleWithoutPrefix",
        "b032": "TranslationOfTitle",
        "b033": "FormerTitle",
        "b202": "TitleType",
        "b203": "TitleText",
        "b276": "AbbreviatedLength",
        "b201": "WorkIDType",
        # Websites
        "b295": "WebsiteRole",
        "b294": "WebsiteDescription",
        "b296": "WebsiteLink",
        # Contributors
        "b034": "SequenceNumber",
        "b035": "ContributorRole",
        "b340": "SequenceNumberWithinRole",
        "b036": "PersonName",
        "b037": "PersonNameInverted",
        "b038": "TitlesBeforeNames",
        "b039": "NamesBeforeKey",
        "b247": "PrefixToKey",
        "b040": "KeyNames",
        "b041": "NamesAfterKey",
        "b248": "SuffixToKey",
        "b042": "LettersAfterNames",
        "b043": "TitlesAfterNames",
        "b250": "PersonNameType",
        "b390": "PersonNameIDType",
        "b044": "BiographicalNote",
        "b045": "ProfessionalPosition",
        "b046": "Affiliation",
        "b047": "CorporateName",
        "b048": "ContributorDescription",
        "b049": "ContributorStatement",
        "b249": "UnnamedPersons",
        "b251": "CountryCode",
        "b398": "RegionCode",
        "b305": "PersonDateRole",
        "b306": "Date",
        "b050": "ConferenceDescription",
        "b051": "ConferenceRole",
        "b052": "ConferenceName",
        "b053": "ConferenceNumber",
        "b054": "ConferenceDate",
        "b055": "ConferencePlace",
        "b342": "ConferenceAcronym",
        "b341": "ConferenceTheme",
        "b343": "ConferenceSponsor",
        # Edition
        "b056": "EditionTypeCode",
        "b057": "EditionNumber",
        "b217": "EditionVersionNumber",
        "b058": "EditionStatement",
        "n386": "NoEdition",
        "b368": "ReligiousTextFeatureType",
        # Language
        "b059": "LanguageOfText",
        "b060": "OriginalLanguage",
        "b252": "LanguageCode",
        "b253": "LanguageRole",
        # Extent and illustrations
        "b061": "NumberOfPages",
        "b254": "PagesRoman",
        "b255": "PagesArabic",
        "b218": "ExtentType",
        "b219": "ExtentValue",
        "b220": "ExtentUnit",
        "b062": "IllustrationsNote",
        "b125": "NumberOfIllustrations",
        "b256": "IllustrationType",
        "b361": "IllustrationTypeDescription",
        "b257": "Number",
        "b063": "MapScale",
        # Subject
        "b064": "BASICMainSubject",
        "b200": "BASICVersion",
        "b065": "BICMainSubject",
        "b066": "BICVersion",
        "b067": "SubjectSchemeIdentifier",
        "b068": "SubjectSchemeVersion",
        "b069": "SubjectCode",
        "b070": "SubjectHeadingText",
        "b071": "SubjectSchemeName",
        "b191": "MainSubjectSchemeIdentifier",
        "b192": "PersonAsSubject",
        "b193": "CorporateBodyAsSubject",
        "b194": "PlaceAsSubject",
        # Audience
        "b073": "AudienceCode",
        "b204": "AudienceCodeType",
        "b205": "AudienceCodeTypeName",
        "b206": "AudienceCodeValue",
        "b074": "AudienceRangeQualifier",
        "b075": "AudienceRangePrecision",
        "b076": "AudienceRangeValue",
        "b189": "USSchoolGrade",
        "b190": "InterestAge",
        "b207": "AudienceDescription",
        "b077": "ComplexitySchemeIdentifier",
        "b078": "ComplexityCode",
        # Descriptive text
        "d100": "Annotation",
        "d101": "MainDescription",
        "d102": "TextTypeCode",
        "d103": "TextFormat",
        "d104": "Text",
        "d105": "TextLinkType",
        "d106": "TextLink",
        "d107": "TextAuthor",
        "d108": "TextSourceCorporate",
        "d109": "TextSourceTitle",
        "d110": "TextPublicationDate",
        "d111": "StartDate",
        "d112": "EndDate",
        "d200": "TableOfContents",
        "d201": "ReviewQuote",
        # Media files
        "f114": "MediaFileTypeCode",
        "f115": "MediaFileFormatCode",
        "f116": "ImageResolution",
        "f117": "MediaFileLinkTypeCode",
        "f118": "MediaFileLink",
        "f119": "TextWithDownload",
        "f120": "DownloadCaption",
        "f121": "DownloadCredit",
        "f122": "DownloadCopyrightNotice",
        "f123": "DownloadTerms",
        "f373": "MediaFileDate",
        "f170": "ProductWebsiteDescription",
        # Prizes
        "g126": "PrizeName",
        "g127": "PrizeYear",
        "g128": "PrizeCountry",
        "g129": "PrizeCode",
        "g343": "PrizeJury",
        # Publisher and imprint
        "b079": "ImprintName",
        "b080": "ImprintCode",
        "b081": "PublisherName",
        "b243": "NameCodeValue",
        "b291": "PublishingRole",
        "b082": "CityOfPublication",
        "b083": "CountryOfPublication",
        "b084": "CopublisherName",
        "b085": "SponsorName",
        "b240": "OriginalPublisher",
        "b086": "AnnouncementDate",
        "b394": "PublishingStatus",
        "b395": "PublishingStatusNote",
        "b003": "PublicationDate",
        "b087": "CopyrightYear",
        "b088": "YearFirstPublished",
        "b383": "ProductLanguage",
        # Rights
        "b089": "SalesRightsType",
        "b090": "RightsCountry",
        "b388": "RightsTerritory",
        "b091": "RightsRegion",
        "b381": "SalesRestrictionType",
        "b382": "SalesOutletName",
        # Measurements
        "c093": "MeasureTypeCode",
        "c094": "Measurement",
        "c095": "MeasureUnitCode",
        "c096": "Height",
        "c097": "Width",
        "c098": "Thickness",
        "c099": "Weight",
        "c100": "Dimensions",
        # Related products
        "h208": "RelationCode",
        "h209": "ProductIDTypeRelated",
        "h210": "RelatedProductForm",
        "h130": "OutOfPrintDate",
        # Supply detail
        "j135": "SupplierEANLocationNumber",
        "j136": "SupplierSAN",
        "j137": "SupplierName",
        "j138": "SupplierSubaccount",
        "j270": "TelephoneNumber",
        "j271": "FaxNumber",
        "j272": "EmailAddress",
        "j292": "SupplierRole",
        "j345": "SupplierIDType",
        "j140": "ReturnsCodeType",
        "j269": "ReturnsCode",
        "j141": "AvailabilityCode",
        "j396": "ProductAvailability",
        "j142": "ExpectedShipDate",
        "j143": "OnSaleDate",
        "j144": "OrderTime",
        "j145": "PackQuantity",
        "j146": "AudienceRestrictionFlag",
        "j147": "AudienceRestrictionNote",
        "j350": "OnHand",
        "j351": "OnOrder",
        "j375": "CBO",
        "j349": "LocationName",
        "j397": "DateFormat",
        "j398": "Reissue",
        "j399": "ReissueDate",
        "j400": "ReissueDescription",
        # Price
        "j148": "PriceTypeCode",
        "j149": "ClassOfTrade",
        "j150": "BICDiscountGroupCode",
        "j151": "PriceAmount",
        "j152": "CurrencyCode",
        "j153": "TaxRateCode1",
        "j154": "TaxRatePercent1",
        "j155": "TaxableAmount1",
        "j156": "TaxAmount1",
        "j157": "TaxRateCode2",
        "j158": "TaxRatePercent2",
        "j159": "TaxableAmount2",
        "j160": "TaxAmount2",
        "j161": "PriceEffectiveFrom",
        "j162": "PriceEffectiveUntil",
        "j163": "DiscountPercent",
        "j164": "PriceStatus",
        "j165": "PriceTypeDescription",
        "j166": "PriceConditionType",
        "j167": "PriceQualifier",
        "j168": "PriceCoded",
        "j169": "PriceAmountSpecial",
        "j170": "PriceAmountWithTax",
        "j171": "PriceAmountWithoutTax",
        "j172": "PriceDate",
        "j173": "PriceDateRole",
        "j174": "PriceCountry",
        "j239": "PricePer",
        "j260": "PriceQualifier",
        "j261": "PriceTypeDescription",
        "j262": "DiscountCodeType",
        "j263": "MinimumOrderQuantity",
        "j264": "BatchBonus",
        "j265": "BatchQuantity",
        "j266": "PricePerUnit",
        "j267": "PricePerUnitQuantity",
        "j268": "PricePerUnitUnit",
        "j302": "Territory",
        "j303": "CountriesExcluded",
        "j304": "TerritoryExcluded",
        "j363": "DiscountCodeTypeName",
        "j364": "DiscountCode",
        # Market representation
        "j401": "MarketCountry",
        "j402": "MarketTerritory",
        "j403": "MarketCountryExcluded",
        "j404": "MarketRestrictionDetail",
        "j405": "MarketPublishingStatus",
        "j406": "MarketDateRole",
        "j407": "MarketDate",
        "j408": "MarketDateFormat",
        "j409": "PromotionContact",
        "j410": "PromotionContactEmail",
        "j411": "AgentName",
        "j412": "AgentRole",
        "j413": "AgentIDType",
    }
)

# Any element name followed by whitespace, "/" or ">"; the boundary keeps
# a short name from matching inside a longer one
_TAG_NAME_RE = re.compile(r"<(/?)([A-Za-z][A-Za-z0-9]*)(?=[\s/>])")


def has_short_tags(xml: str) -> bool:
    """Return True if the head of the document uses short-tag element names."""
    return bool(_SHORT_TAG_RE.search(xml[:DETECTION_WINDOW]))


def get_reference_tag(short_tag: str) -> str | None:
    """Look up the reference name for a short tag (case-insensitive)."""
    return SHORT_TAG_MAP.get(short_tag.lower())


def _expand_tag(match: re.Match[str]) -> str:
    reference = SHORT_TAG_MAP.get(match.group(2).lower())
    if reference is None:
        return match.group(0)
    return f"<{match.group(1)}{reference}"


def expand_short_tags(xml: str) -> str:
    """Rewrite every known short tag to its reference name in a single pass.

    Opening tags (with or without attributes, including self-closing) and
    closing tags are rewritten; unknown tags are left untouched.
    """
    return _TAG_NAME_RE.sub(_expand_tag, xml)
