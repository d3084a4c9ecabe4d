"""
Stage runners: read inputs, call core engines, write outputs.

    01 features         features/features.parquet
    02 quality          features/feature_quality.parquet, figures/quality_matrix.png
    03 feature_matrix   features/normalised_features.parquet, figures/feature_matrix.png
    04 low_dimension    projection/low_dimension.parquet, figures/low_dimension.png
    05 classification   classification/classification_{summary,raw}.parquet, figures/classification.png
    06 top_features     classification/{top_features,feature_correlations}.parquet,
                        figures/{feature_correlations,top_feature_violins}.png
"""
